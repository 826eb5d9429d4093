"""Authentication service for operator profiles.

Handles:
- Username / password validation
- Profile registration and login
- JWT access token issuance (identity = username = tenant id)
"""
import logging
import re
from typing import Any, Dict, Tuple

from flask_jwt_extended import create_access_token
from sqlalchemy.exc import IntegrityError

from ledger import db
from ledger.models import Profile
from ledger.utils.errors import AuthenticationError, ValidationError

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication and profile management."""

    USERNAME_PATTERN = re.compile(r'^[a-z0-9]+$')
    USERNAME_MAX_LENGTH = 64
    PASSWORD_MIN_LENGTH = 6

    @staticmethod
    def normalize_username(username) -> str:
        return str(username or '').strip().lower()

    @classmethod
    def validate_credentials(cls, username, password) -> Tuple[str, str]:
        """Check format rules and return (username, password).

        Raises:
            ValidationError: empty, non alphanumeric or too long username,
            password shorter than 6 characters
        """
        username = cls.normalize_username(username)
        if not username:
            raise ValidationError("Nom d'utilisateur requis")
        if len(username) > cls.USERNAME_MAX_LENGTH:
            raise ValidationError("Nom d'utilisateur trop long")
        if not cls.USERNAME_PATTERN.match(username):
            raise ValidationError(
                "Le nom d'utilisateur ne doit contenir que des lettres et chiffres anglais"
            )
        if not isinstance(password, str) or len(password) < cls.PASSWORD_MIN_LENGTH:
            raise ValidationError(
                f'Le mot de passe doit contenir au moins {cls.PASSWORD_MIN_LENGTH} caractères'
            )
        return username, password

    @staticmethod
    def _session_payload(profile: Profile) -> Dict[str, Any]:
        return {
            'access_token': create_access_token(identity=profile.username),
            'profile': profile.to_dict()
        }

    @classmethod
    def register(cls, username, password) -> Dict[str, Any]:
        """Create a profile and open a session.

        Raises:
            ValidationError: invalid credentials or username already taken
        """
        username, password = cls.validate_credentials(username, password)

        if db.session.get(Profile, username):
            raise ValidationError("Ce nom d'utilisateur est déjà pris")

        profile = Profile(username=username)
        profile.set_password(password)
        db.session.add(profile)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ValidationError("Ce nom d'utilisateur est déjà pris")

        logger.info(f"Profile registered: {username}")
        return cls._session_payload(profile)

    @classmethod
    def login(cls, username, password) -> Dict[str, Any]:
        """Open a session for an existing profile.

        Raises:
            AuthenticationError: unknown username or wrong password
        """
        username = cls.normalize_username(username)
        profile = db.session.get(Profile, username) if username else None

        if not profile or not isinstance(password, str) or not profile.check_password(password):
            logger.warning(f"Failed login attempt for '{username}'")
            raise AuthenticationError('Identifiants invalides')

        return cls._session_payload(profile)

    @classmethod
    def sign_in(cls, username, password) -> Dict[str, Any]:
        """Single-form entry: login when the profile exists, else register."""
        username, password = cls.validate_credentials(username, password)
        if db.session.get(Profile, username):
            return cls.login(username, password)
        return cls.register(username, password)

    @classmethod
    def get_profile(cls, username: str) -> Dict[str, Any]:
        profile = db.session.get(Profile, cls.normalize_username(username))
        if not profile:
            raise AuthenticationError('Profil introuvable')
        return profile.to_dict()
