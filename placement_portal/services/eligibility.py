"""
Eligibility - GPA gate for applying to a company.
"""
from typing import Optional


def is_eligible(student_gpa: Optional[float], company_min_gpa: Optional[float]) -> bool:
    """
    True iff the student's GPA meets the company's minimum.

    A company without min_gpa accepts everyone (treated as 0). A student
    without a GPA on record is treated as 0.
    """
    if company_min_gpa is None:
        company_min_gpa = 0
    if student_gpa is None:
        student_gpa = 0
    return float(student_gpa) >= float(company_min_gpa)
