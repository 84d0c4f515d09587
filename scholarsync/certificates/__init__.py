"""Certificates of course completion."""

from .models import CERTIFICATES_TABLES_CQL, Certificate, generate_certificate_id


__all__ = [
    "CERTIFICATES_TABLES_CQL",
    "Certificate",
    "generate_certificate_id",
]
