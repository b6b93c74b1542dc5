"""
Club roster primitives.

Members are identified by normalized email everywhere in the app.
"""
from dataclasses import dataclass


def normalize_email(value: str) -> str:
    return (value or "").strip().lower()


@dataclass(frozen=True)
class Member:
    email: str
    name: str


def find_member(members: list[Member], email: str) -> Member | None:
    email = normalize_email(email)
    for member in members:
        if member.email == email:
            return member
    return None
