"""
Campus Placement Portal
Application lifecycle and placement-exclusivity engine.

Architecture:
- MongoDB: users, companies, applications
- Services: eligibility, application store, placement state machine
- FastAPI: thin routes over ApplicationService
"""

__version__ = "1.0.0"
