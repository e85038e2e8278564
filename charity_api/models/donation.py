from typing import Any, Dict

OPERATOR_STATUSES = ("pending-review", "approved", "rejected")

_DONOR_FIELDS = ("firstName", "lastName", "email", "country", "phoneCountryCode", "mobile")


def initial_status(payment_method: str) -> str:
    return "pending-review" if payment_method == "direct-transfer" else "pending"


def normalize_donation(record: Dict[str, Any]) -> Dict[str, Any]:
    """Donations stored by older clients keep donor fields flat and use provider names."""
    donor = record.get("donorInfo")
    if not isinstance(donor, dict):
        donor = {name: record.get(name) for name in _DONOR_FIELDS}
    method = record.get("paymentMethod")
    if method == "paystack":
        method = "gateway"
    out = {
        "id": record.get("id"),
        "targetGalleryItemId": record.get("targetGalleryItemId")
        or record.get("donationGalleryItemId"),
        "donationTitle": record.get("donationTitle"),
        "donorInfo": donor,
        "paymentMethod": method,
        "status": record.get("status") or record.get("transactionStatus"),
        "createdAt": record.get("createdAt"),
        "updatedAt": record.get("updatedAt"),
    }
    proof = record.get("proofUrl") or record.get("proofImageUrl")
    if proof:
        out["proofUrl"] = proof
    reference = record.get("gatewayReference") or record.get("paystackReference")
    if reference:
        out["gatewayReference"] = reference
    amount = record.get("amount", record.get("amountNaira"))
    if amount is not None:
        out["amount"] = amount
    return out
