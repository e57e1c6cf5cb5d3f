import pytest
from decimal import Decimal
from pydantic import ValidationError
from app.domain.ticketing.schemas import TicketTypeCreateDTO, PurchaseRequestDTO, WaitlistRequestDTO, \
    CheckInByCodeDTO, PurchaseResultDTO


def test_ticket_type_create_trims_name():
    dto = TicketTypeCreateDTO(name="  VIP ", price="499.99", quantity=100)

    assert dto.name == "VIP"
    assert dto.price == Decimal("499.99")


@pytest.mark.parametrize("override", [
    {"price": "-1"},
    {"quantity": -1},
    {"name": "   "},
    {"price": "1.999"},
])
def test_ticket_type_create_rejects_bad_values(override):
    payload = {"name": "VIP", "price": "10", "quantity": 1}
    payload.update(override)
    with pytest.raises(ValidationError):
        TicketTypeCreateDTO(**payload)


def test_ticket_type_create_allows_empty_pool():
    assert TicketTypeCreateDTO(name="Comp", price="0", quantity=0).quantity == 0


def test_purchase_request_reads_camel_case_and_blank_promo_becomes_none():
    dto = PurchaseRequestDTO(**{"ticketTypeId": 3, "promoCode": "   "})

    assert dto.ticket_type_id == 3
    assert dto.promo_code is None


def test_purchase_request_missing_ticket_type_raises():
    with pytest.raises(ValidationError) as e:
        PurchaseRequestDTO(**{"promoCode": "SUMMER25"})
    assert e.value.errors()[0]["loc"] == ("ticketTypeId",)


def test_waitlist_request_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        WaitlistRequestDTO(**{"ticketTypeId": 3, "quantity": 2})


def test_check_in_by_code_trims():
    assert CheckInByCodeDTO(**{"ticketCode": " TICKET-abc "}).ticket_code == "TICKET-abc"


def test_purchase_result_serializes_camel_case():
    dto = PurchaseResultDTO(remaining=4, purchase_id=7, ticket_id=9, final_price=Decimal("10.00"))

    out = dto.model_dump(by_alias=True, exclude_none=True)

    assert out == {
        "message": "Purchase successful",
        "remaining": 4,
        "purchaseId": 7,
        "ticketId": 9,
        "finalPrice": Decimal("10.00"),
    }
