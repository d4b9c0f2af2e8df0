import csv
import io
import re
from dataclasses import dataclass

from .errors import NotFoundError
from .services.data import DataStore
from .stores.base import Store

HEADER = ["Student ID", "Student Name", "Email", "Registration Date", "Registration Time"]


@dataclass
class RegistrantRow:
    student_id: str
    name: str
    email: str
    registration_date: str
    registration_time: str

    def as_list(self) -> list[str]:
        return [self.student_id, self.name, self.email, self.registration_date, self.registration_time]


def registrants(data: DataStore, store: Store, event_id: str) -> list[RegistrantRow]:
    registrations = [reg for reg in data.event_registrations if reg.event_id == event_id]
    if not registrations:
        raise NotFoundError("No registrations found for this event.")

    users = store.users_by_ids(reg.user_id for reg in registrations)
    rows = []
    for reg in registrations:
        user = users.get(reg.user_id)
        rows.append(
            RegistrantRow(
                student_id=(user.student_id if user else None) or "N/A",
                name=user.name if user else "Unknown Student",
                email=user.email if user else "Unknown Email",
                registration_date=reg.registered_at.strftime("%Y-%m-%d"),
                registration_time=reg.registered_at.strftime("%H:%M:%S"),
            )
        )
    return rows


def render_csv(rows: list[RegistrantRow]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(HEADER)
    for row in rows:
        writer.writerow(row.as_list())
    return buffer.getvalue()


def export_filename(event_name: str) -> str:
    return f"{re.sub(r'[^a-zA-Z0-9]', '_', event_name)}_registrations.csv"
