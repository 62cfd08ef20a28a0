"""
Enquiry Module (``procurement_modules.enquiry``).

Buyer-side requirements addressed to one vendor.  An enquiry is quoted,
then accepted when one of its quotations is accepted, or rejected by the
vendor.
"""

from procurement_modules.enquiry.models import Enquiry, EnquiryItem, EnquiryStatus
from procurement_modules.enquiry.service import EnquiryService
from procurement_modules.enquiry.workflows import ENQUIRY_WORKFLOW

__all__ = [
    "ENQUIRY_WORKFLOW",
    "Enquiry",
    "EnquiryItem",
    "EnquiryService",
    "EnquiryStatus",
]
