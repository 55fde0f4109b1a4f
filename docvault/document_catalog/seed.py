"""Default document type catalog.

Identity and banking types cover client KYC; business types cover shops.
"""

MB = 1024 * 1024

DOCUMENT_MIME_TYPES = ["application/pdf", "image/jpeg", "image/jpg", "image/png", "image/webp"]
IMAGE_MIME_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/webp"]

DEFAULT_DOCUMENT_TYPES: list[dict] = [
    # Identity
    {"type_name": "pan_card", "display_name": "PAN Card", "category": "identity"},
    {"type_name": "aadhar_card", "display_name": "Aadhaar Card", "category": "identity"},
    {"type_name": "passport", "display_name": "Passport", "category": "identity"},
    {"type_name": "driving_license", "display_name": "Driving License", "category": "identity"},
    {"type_name": "voter_id", "display_name": "Voter ID", "category": "identity"},
    # Banking
    {"type_name": "passbook_page", "display_name": "Passbook Page", "category": "banking"},
    {"type_name": "statement", "display_name": "Bank Statement", "category": "banking"},
    {"type_name": "cheque_leaf", "display_name": "Cheque Leaf", "category": "banking"},
    {"type_name": "fd_receipt", "display_name": "FD Receipt", "category": "banking"},
    {"type_name": "loan_document", "display_name": "Loan Document", "category": "banking"},
    # Business
    {"type_name": "gst_certificate", "display_name": "GST Certificate", "category": "business"},
    {"type_name": "trade_license", "display_name": "Trade License", "category": "business"},
    {
        "type_name": "shop_photo",
        "display_name": "Shop Photo",
        "category": "business",
        "allowed_mime_types": IMAGE_MIME_TYPES,
        "max_file_size": 10 * MB,
    },
]


def default_rows() -> list[dict]:
    rows = []
    for entry in DEFAULT_DOCUMENT_TYPES:
        row = {
            "allowed_mime_types": DOCUMENT_MIME_TYPES,
            "max_file_size": 50 * MB,
            "is_active": True,
        }
        row.update(entry)
        row["allowed_mime_types"] = list(row["allowed_mime_types"])
        rows.append(row)
    return rows
