"""Parsing of archived mails."""

from .parsing import build_mail_identifier, extract_message_id, parse_mail, to_locations

__all__ = ["build_mail_identifier", "extract_message_id", "parse_mail", "to_locations"]
