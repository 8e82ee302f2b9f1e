"""Concurrent rotation of one refresh token must produce a single winner."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.vidhub.auth.auth_service import CredentialIssuer, TokenPair
from src.vidhub.db.db_init import init_db
from src.vidhub.exceptions import Unauthorized
from src.vidhub.security.passwords import hash_password
from src.vidhub.users.users_models import UserRecord
from src.vidhub.users.users_repository import UserRepository

from tests.conftest import ACCESS_SECRET, FAST_ITERATIONS, REFRESH_SECRET


class GatedUserRepository(UserRepository):
    """Hold every reader at a barrier so both rotations pass the compare step."""

    def __init__(self, session_factory) -> None:
        super().__init__(session_factory)
        self.barrier: threading.Barrier | None = None

    def get_user(self, user_id: str) -> UserRecord:
        user = super().get_user(user_id)
        if self.barrier is not None:
            self.barrier.wait(timeout=10)
        return user


@pytest.fixture
def gated_repo(tmp_path) -> GatedUserRepository:
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        future=True,
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    init_db(engine)
    return GatedUserRepository(sessionmaker(bind=engine, expire_on_commit=False))


def test_concurrent_rotation_has_exactly_one_winner(gated_repo: GatedUserRepository) -> None:
    issuer = CredentialIssuer(
        users=gated_repo,
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=10),
    )
    user = gated_repo.create_user(
        username="racer",
        email="racer@example.com",
        full_name="Racer",
        password_hash=hash_password("secret", iterations=FAST_ITERATIONS),
    )
    issued = issuer.issue(user.id)
    gated_repo.barrier = threading.Barrier(2)

    def attempt() -> TokenPair | Exception:
        try:
            return issuer.rotate(issued.refresh_token)
        except Unauthorized as exc:
            return exc

    with ThreadPoolExecutor(max_workers=2) as pool:
        outcomes = list(pool.map(lambda _: attempt(), range(2)))

    winners = [outcome for outcome in outcomes if isinstance(outcome, TokenPair)]
    losers = [outcome for outcome in outcomes if isinstance(outcome, Unauthorized)]
    assert len(winners) == 1
    assert len(losers) == 1

    gated_repo.barrier = None
    assert gated_repo.get_user(user.id).refresh_token == winners[0].refresh_token
    # the winner's token keeps working; the loser holds nothing usable
    follow_up = issuer.rotate(winners[0].refresh_token)
    assert follow_up.refresh_token != winners[0].refresh_token
