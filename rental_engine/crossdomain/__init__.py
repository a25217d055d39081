"""Anti-corruption layer between the CMS schema and the domain model."""

from .translators import CarTranslator, PaymentTranslator, ReservationTranslator

__all__ = ["CarTranslator", "PaymentTranslator", "ReservationTranslator"]
