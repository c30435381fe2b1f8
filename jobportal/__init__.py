"""
Job Portal Access Service

Backend for the candidate / employer / MIS job portal:
- Approval gate: restricts portal areas until MIS approves a profile
- Membership numbers: JG-YY-NNNNNN, assigned when a candidate is approved
- JWT authentication for all three roles

Architecture:
- PostgreSQL: users, candidates, companies, employers (source of truth)
- FastAPI: REST API consumed by the portal front end
"""

__version__ = "1.0.0"
