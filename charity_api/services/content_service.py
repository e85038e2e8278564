import logging

from charity_api.models.seed import DEFAULT_DONATION_CONTENT
from charity_api.schemas import ContactForm, DonationCaseForm, DonationContentForm
from charity_api.utils.dates import utc_now_iso
from charity_api.utils.slug import create_id

logger = logging.getLogger(__name__)


def list_cases(col):
    return col.list()


def create_case(col, form: DonationCaseForm) -> dict:
    case = {"id": create_id("case"), **form.model_dump()}
    col.create(case)
    logger.info("[content] created case %s", case["id"])
    return case


def get_donation_content(col) -> dict:
    return col.find_one({}) or dict(DEFAULT_DONATION_CONTENT)


def put_donation_content(col, form: DonationContentForm) -> dict:
    content = form.model_dump()
    col.put_singleton(content)
    logger.info("[content] donation page content replaced")
    return content


def record_contact_message(col, form: ContactForm) -> dict:
    message = {"id": create_id("message"), "createdAt": utc_now_iso(), **form.model_dump()}
    col.create(message)
    logger.info("[contact] message %s from %s", message["id"], form.email)
    return message


def list_contact_messages(col):
    return col.list()
