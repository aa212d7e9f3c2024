"""
Demo Seed
Legt Demo-Benutzer sowie einen Wettbewerb mit zwei Kadern an
"""

import logging
from typing import Any

from sqlalchemy.orm import Session

from matchnarrator.common.timeutils import utcnow
from matchnarrator.database.services import imports as import_service
from matchnarrator.database.services import users as user_service
from matchnarrator.domain.models import UserRole

logger = logging.getLogger(__name__)

DEMO_USERS = (
    ("admin@example.com", "Admin123!", "Super Admin", UserRole.SUPERADMIN),
    ("narrador@example.com", "Narrador123!", "Juan Narrador", UserRole.NARRADOR),
)

BOCA = [
    ("Sergio", "Romero", "GK", 1),
    ("Luis", "Advíncula", "DF", 17),
    ("Marcos", "Rojo", "DF", 6),
    ("Nicolás", "Figal", "DF", 4),
    ("Frank", "Fabra", "DF", 18),
    ("Cristian", "Medina", "MF", 36),
    ("Pol", "Fernández", "MF", 8),
    ("Ezequiel", "Fernández", "MF", 21),
    ("Exequiel", "Zeballos", "FW", 20),
    ("Miguel", "Merentiel", "FW", 16),
    ("Edinson", "Cavani", "FW", 10),
]

RIVER = [
    ("Franco", "Armani", "GK", 1),
    ("Milton", "Casco", "DF", 20),
    ("Paulo", "Díaz", "DF", 17),
    ("Leandro", "González Pirez", "DF", 14),
    ("Enzo", "Díaz", "DF", 13),
    ("Rodrigo", "Aliendro", "MF", 29),
    ("Nacho", "Fernández", "MF", 26),
    ("Manuel", "Lanzini", "MF", 10),
    ("Claudio", "Echeverri", "MF", 19),
    ("Facundo", "Colidio", "FW", 11),
    ("Miguel", "Borja", "FW", 9),
]


def _squad(players: list[tuple[str, str, str, int]]) -> list[dict[str, Any]]:
    return [
        {"first_name": first, "last_name": last, "position": pos, "number": number, "nationality": "Argentina"}
        for first, last, pos, number in players
    ]


def demo_document(year: int) -> dict[str, Any]:
    return {
        "competition": {"name": "Liga Profesional Argentina", "country": "Argentina"},
        "season": {"name": str(year), "start_date": f"{year}-01-15", "end_date": f"{year}-12-15"},
        "teams": [
            {"name": "Boca Juniors", "short_name": "BOCA", "city": "Buenos Aires", "players": _squad(BOCA)},
            {"name": "River Plate", "short_name": "RIVER", "city": "Buenos Aires", "players": _squad(RIVER)},
        ],
        "fixtures": [
            {
                "home_team": "Boca Juniors",
                "away_team": "River Plate",
                "match_date": f"{year}-09-21T20:00:00Z",
                "venue": "La Bombonera",
                "round": 1,
                "round_label": "Regular Season - 1",
            }
        ],
        "standings": [],
    }


def seed_demo_data(session: Session) -> dict[str, Any]:
    """Idempotent: existing users are kept, catalogue data is upserted."""
    created_users = []
    for email, password, name, role in DEMO_USERS:
        if user_service.get_by_email(session, email) is None:
            user_service.create_user(session, email=email, password=password, name=name, role=role)
            created_users.append(email)
    result = import_service.import_manual_season(session, demo_document(utcnow().year))
    logger.info("Seed finished", extra={"users_created": len(created_users)})
    return {"users_created": created_users, "summary": result["summary"]}
