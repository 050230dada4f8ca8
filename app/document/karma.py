from sqlalchemy import case
from sqlalchemy.orm import Session
from sqlalchemy.orm.util import identity_key

from app.models import User

UPLOAD_REWARD = 10
DOWNLOAD_COST = 1


class KarmaLedger:
    """Karma mutations, each a relative UPDATE inside the caller's transaction.

    The caller commits; nothing here commits on its own.
    """

    def __init__(self, db: Session):
        self.db = db

    def balance(self, user_id: int) -> int | None:
        return self.db.query(User.karma_points).filter(User.id == user_id).scalar()

    def forget(self, user_id: int):
        """Expire a cached ``User.karma_points`` so the next read hits the database."""
        user = self.db.identity_map.get(identity_key(User, user_id))
        if user is not None:
            self.db.expire(user, ["karma_points"])

    def credit_upload(self, user_id: int):
        self.db.query(User).filter(User.id == user_id).update(
            {User.karma_points: User.karma_points + UPLOAD_REWARD},
            synchronize_session=False,
        )

    def debit_download(self, user_id: int) -> bool:
        # The balance check is the only floor on download debits.
        updated = (
            self.db.query(User)
            .filter(User.id == user_id, User.karma_points >= DOWNLOAD_COST)
            .update({User.karma_points: User.karma_points - DOWNLOAD_COST}, synchronize_session=False)
        )
        return updated == 1

    def debit_deletion(self, user_id: int):
        remaining = User.karma_points - UPLOAD_REWARD
        self.db.query(User).filter(User.id == user_id).update(
            {User.karma_points: case((remaining < 0, 0), else_=remaining)},
            synchronize_session=False,
        )
