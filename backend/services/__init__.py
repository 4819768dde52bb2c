from services.mail import Mailer, LogMailer, get_mailer
from services import auth, user

__all__ = ["Mailer", "LogMailer", "get_mailer", "auth", "user"]
