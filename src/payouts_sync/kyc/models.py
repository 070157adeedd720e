"""KYC document models."""

import enum
from typing import List, Optional
from pydantic import BaseModel, Field

from ..connectors.base import MiraklShopDocument

# Marketplace document type codes
PROOF_OF_IDENTITY_FRONT = "hw-ind-proof-identity-front"
PROOF_OF_IDENTITY_BACK = "hw-ind-proof-identity-back"
PROOF_OF_BUSINESS = "hw-prof-proof-business-front"

# Shop fields naming the kind of proof uploaded
HW_PROOF_OF_IDENTITY_TYPE = "hw-ind-proof-identity"
HW_PROOF_OF_BUSINESS_TYPE = "hw-prof-proof-business"


class ProofOfIdentityType(str, enum.Enum):
    PASSPORT = "PASSPORT"
    DRIVERS_LICENSE = "DRIVERS_LICENSE"
    GOVERNMENT_ID = "GOVERNMENT_ID"

    @classmethod
    def document_codes(cls) -> List[str]:
        return [PROOF_OF_IDENTITY_FRONT, PROOF_OF_IDENTITY_BACK]


class ProofOfBusinessType(str, enum.Enum):
    INCORPORATION = "INCORPORATION"
    BUSINESS_REGISTRATION = "BUSINESS_REGISTRATION"
    OPERATING_AGREEMENT = "OPERATING_AGREEMENT"

    @classmethod
    def document_codes(cls) -> List[str]:
        return [PROOF_OF_BUSINESS]


class KycSellerDocuments(BaseModel):
    """A seller flagged for verification with the documents to send."""
    client_user_id: str
    user_token: str
    hyperwallet_program: str
    professional: bool = False
    country: Optional[str] = None
    proof_of_identity: Optional[ProofOfIdentityType] = None
    proof_of_business: Optional[ProofOfBusinessType] = None
    documents: List[MiraklShopDocument] = Field(default_factory=list)

    def expected_document_codes(self) -> List[str]:
        if self.professional:
            return ProofOfBusinessType.document_codes()
        return ProofOfIdentityType.document_codes()

    def has_all_documents(self) -> bool:
        present = {doc.type for doc in self.documents}
        if self.professional:
            return PROOF_OF_BUSINESS in present
        # Passports only have a front page
        if self.proof_of_identity == ProofOfIdentityType.PASSPORT:
            return PROOF_OF_IDENTITY_FRONT in present
        return all(code in present for code in self.expected_document_codes())
