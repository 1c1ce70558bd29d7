from models.base_model import Base, BaseModel, as_utc, utcnow
from sqlalchemy import Column, String, Boolean, DateTime, Enum, Text
from utils.security import hash_password

ROLES = ("user", "admin", "moderator")


class User(BaseModel, Base):
    __tablename__ = "users"
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    avatar = Column(String(512), nullable=True)
    role = Column(Enum(*ROLES, name="user_role"), nullable=False, default="user")
    is_active = Column(Boolean, nullable=False, default=True)
    is_email_verified = Column(Boolean, nullable=False, default=False)
    # Only the latest refresh token is valid; overwriting it revokes the previous one
    refresh_token = Column(Text, nullable=True)
    password_changed_at = Column(DateTime(timezone=True), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("role", "user")
        kwargs.setdefault("is_active", True)
        kwargs.setdefault("is_email_verified", False)
        if isinstance(kwargs.get("email"), str):
            kwargs["email"] = kwargs["email"].strip().lower()
        super().__init__(*args, **kwargs)

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    @password.setter
    def password(self, plaintext: str):
        had_password = self.password_hash is not None
        self.password_hash = hash_password(plaintext)
        if had_password:
            self.password_changed_at = utcnow()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def changed_password_after(self, issued_at: float) -> bool:
        """True when the password changed after a token issued at `issued_at` (epoch seconds)."""
        changed = as_utc(self.password_changed_at)
        if changed is None:
            return False
        return changed.timestamp() > float(issued_at)

    def __repr__(self):
        return f"<User {self.email} role={self.role}>"
