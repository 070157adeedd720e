"""KYC proof-of-identity and proof-of-business document push."""

from .models import (
    KycSellerDocuments,
    ProofOfBusinessType,
    ProofOfIdentityType,
    PROOF_OF_BUSINESS,
    PROOF_OF_IDENTITY_BACK,
    PROOF_OF_IDENTITY_FRONT,
)
from .service import KycDocumentService

__all__ = [
    "KycSellerDocuments",
    "ProofOfBusinessType",
    "ProofOfIdentityType",
    "PROOF_OF_BUSINESS",
    "PROOF_OF_IDENTITY_BACK",
    "PROOF_OF_IDENTITY_FRONT",
    "KycDocumentService",
]
