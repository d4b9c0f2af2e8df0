"""Demo dataset served in fallback mode and used to bootstrap an empty database."""

from datetime import datetime
from functools import lru_cache

from .auth_utils import hash_password

DEMO_PASSWORD = "password123"
SEED_CREATED_AT = datetime(2024, 1, 1)

CLUBS = [
    {"id": "1", "name": "CCC", "description": "Computer Coding Club"},
    {"id": "2", "name": "IELTS", "description": "International English Language Testing System"},
    {"id": "3", "name": "EPRC", "description": "English Proficiency Resource Center"},
    {"id": "4", "name": "IEF", "description": "Innovation and Entrepreneurship Forum"},
    {"id": "5", "name": "Cultural and Music Club", "description": "Cultural activities and music performances"},
]

EVENTS = [
    {
        "id": "1",
        "name": "Coding Championship",
        "organizing_club_id": "1",
        "venue": "Computer Lab A",
        "date": "2024-02-15",
        "time": "10:00",
        "created_by": "1",
    },
    {
        "id": "2",
        "name": "UI/UX Design Competition",
        "organizing_club_id": "1",
        "venue": "Design Studio",
        "date": "2024-02-20",
        "time": "14:00",
        "created_by": "1",
    },
]

ADMIN = {"id": "1", "email": "admin@college.edu", "name": "Admin User", "student_id": None, "role": "admin"}

# The pre-existing student account plus the roster shown in registrant exports.
STUDENTS = [
    {"id": "2", "email": "student@college.edu", "name": "John Doe", "student_id": "STU001", "role": "student"},
    {"id": "3", "email": "jane.smith@student.edu", "name": "Jane Smith", "student_id": "STU002", "role": "student"},
    {"id": "4", "email": "mike.johnson@student.edu", "name": "Mike Johnson", "student_id": "STU003", "role": "student"},
    {"id": "5", "email": "sarah.wilson@student.edu", "name": "Sarah Wilson", "student_id": "STU004", "role": "student"},
    {"id": "6", "email": "alex.brown@student.edu", "name": "Alex Brown", "student_id": "STU005", "role": "student"},
]


@lru_cache(maxsize=1)
def demo_password_hash() -> str:
    return hash_password(DEMO_PASSWORD)
