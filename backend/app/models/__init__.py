from .profile import Profile
from .student import StudentProfile
from .faculty import FacultyProfile
from .recruiter import Company, RecruiterProfile
from .institution import Institution
from .achievement import Achievement, AchievementCategory
from .event import Event, EventParticipation
from .job import JobPosting
from .application import JobApplication
from .portfolio import StudentPortfolio
from .mentee import Mentee

__all__ = [
    "Profile",
    "StudentProfile",
    "FacultyProfile",
    "Company",
    "RecruiterProfile",
    "Institution",
    "Achievement",
    "AchievementCategory",
    "Event",
    "EventParticipation",
    "JobPosting",
    "JobApplication",
    "StudentPortfolio",
    "Mentee",
]
