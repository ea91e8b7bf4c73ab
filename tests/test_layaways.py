from datetime import date, timedelta
from decimal import Decimal

import pytest

from retail_core.database import transaction
from retail_core.errors import ConflictError, NotFoundError, ValidationError
from retail_core.models import LayawayStatus, MovementType, Payment, Product, SaleStatus, StockMovement
from retail_core.services import layaways as layaway_service
from retail_core.services import ledger, reports
from retail_core.services import sales as sales_service


def _open(db, actor, product_id, deposit, method="EFECTIVO", customer="Ana Gomez"):
    with transaction(db):
        account = layaway_service.create_layaway(db, actor, product_id, customer, deposit, method)
        account_id = account.id
    return account_id


def _pay(db, actor, account_id, amount, method="EFECTIVO"):
    with transaction(db):
        account = layaway_service.add_layaway_payment(db, actor, account_id, amount, method)
        payment_id = account.payments[-1].id
    return payment_id


def _out_movements(db, product_id):
    return (
        db.query(StockMovement)
        .filter(StockMovement.product_id == product_id, StockMovement.type == MovementType.OUT)
        .all()
    )


def test_create_freezes_price_and_records_initial_deposit(db, admin, make_product):
    pid = make_product(price=200000, stock=1)
    account_id = _open(db, admin, pid, 50000, customer={"name": " ana gomez ", "phone": "3001234567", "city": "cali"})

    with transaction(db):
        db.get(Product, pid).price = Decimal("250000")

    account = layaway_service.get_layaway(db, account_id)
    assert account.code == "AP-00001"
    assert account.status == LayawayStatus.OPEN
    assert account.customer_name == "ANA GOMEZ"
    assert account.city == "CALI"
    assert account.total_price == Decimal("200000.00")
    assert account.total_paid == Decimal("50000")
    assert account.balance == Decimal("150000")
    assert len(account.payments) == 1
    assert account.payments[0].is_initial
    assert account.payments[0].note == "ABONO INICIAL"


def test_create_does_not_touch_stock(db, admin, make_product):
    pid = make_product(price=1000, stock=2)
    _open(db, admin, pid, 100)

    assert ledger.compute_stock(db, pid) == 2
    assert _out_movements(db, pid) == []


def test_codes_are_sequential(db, admin, make_product):
    pid = make_product(price=1000)
    first = _open(db, admin, pid, 100)
    second = _open(db, admin, pid, 100)

    assert layaway_service.get_layaway(db, first).code == "AP-00001"
    assert layaway_service.get_layaway(db, second).code == "AP-00002"


def test_codes_keep_growing_past_five_digits(db, admin, make_product):
    pid = make_product(price=1000)
    first = _open(db, admin, pid, 100)
    with transaction(db):
        layaway_service.get_layaway(db, first).code = "AP-99999"

    second = _open(db, admin, pid, 100)
    third = _open(db, admin, pid, 100)

    assert layaway_service.get_layaway(db, second).code == "AP-100000"
    assert layaway_service.get_layaway(db, third).code == "AP-100001"


def test_create_rejects_bad_input(db, admin, make_product):
    pid = make_product(price=1000)

    with pytest.raises(ValidationError):
        _open(db, admin, pid, 0)
    with pytest.raises(ValidationError):
        _open(db, admin, pid, 100, customer="   ")
    with pytest.raises(ValidationError):
        _open(db, admin, pid, 100, method="CHEQUE")
    with pytest.raises(ConflictError):
        _open(db, admin, pid, 1001)
    with pytest.raises(NotFoundError):
        _open(db, admin, 9999, 100)

    assert layaway_service.list_layaways(db) == []


def test_payments_accumulate_and_cannot_overpay(db, admin, make_product):
    pid = make_product(price=1000)
    account_id = _open(db, admin, pid, 300)

    _pay(db, admin, account_id, 200, method="QR_LLAVE")
    with pytest.raises(ConflictError):
        _pay(db, admin, account_id, 501)

    account = layaway_service.get_layaway(db, account_id)
    assert account.total_paid == account.initial_deposit + sum(p.amount for p in account.payments if not p.is_initial)
    assert account.total_paid == Decimal("500")
    assert len(account.payments) == 2


def test_close_is_rejected_while_balance_exceeds_threshold(db, admin, make_product):
    pid = make_product(price=2000, stock=1)
    account_id = _open(db, admin, pid, 1000)

    with pytest.raises(ConflictError):
        with transaction(db):
            layaway_service.close_layaway(db, admin, account_id)

    assert layaway_service.get_layaway(db, account_id).status == LayawayStatus.OPEN
    assert ledger.compute_stock(db, pid) == 1


def test_close_within_threshold_hands_off_to_a_sale(db, admin, make_product):
    pid = make_product(price=2000, cost=800, stock=2)
    account_id = _open(db, admin, pid, 1000)
    _pay(db, admin, account_id, 600, method="DATAFONO")

    with transaction(db):
        account, sale = layaway_service.close_layaway(db, admin, account_id)
        sale_id = sale.id

    account = layaway_service.get_layaway(db, account_id)
    sale = sales_service.get_sale(db, sale_id)
    assert account.status == LayawayStatus.CLOSED
    assert account.closed_at is not None
    assert account.sale_id == sale_id
    assert sale.layaway_id == account_id
    assert sale.total == Decimal("1600.00")
    assert [(l.product_id, l.qty) for l in sale.lines] == [(pid, 1)]
    assert sorted((p.method.value, p.amount) for p in sale.payments) == [
        ("DATAFONO", Decimal("600.00")),
        ("EFECTIVO", Decimal("1000.00")),
    ]
    assert all(p.layaway_id == account_id for p in sale.payments)
    assert len(_out_movements(db, pid)) == 1
    assert ledger.compute_stock(db, pid) == 1


def test_closed_account_is_terminal(db, admin, make_product):
    pid = make_product(price=1000, stock=1)
    account_id = _open(db, admin, pid, 1000)

    with transaction(db):
        sale_id = layaway_service.close_layaway(db, admin, account_id)[1].id

    with pytest.raises(ConflictError):
        _pay(db, admin, account_id, 1)
    with pytest.raises(ConflictError):
        with transaction(db):
            layaway_service.close_layaway(db, admin, account_id)
    with pytest.raises(ConflictError):
        with transaction(db):
            layaway_service.remove_layaway_payment(db, admin, account_id, 1)
    with pytest.raises(ConflictError):
        with transaction(db):
            sales_service.void_sale(db, admin, sale_id)

    assert len(_out_movements(db, pid)) == 1
    assert sales_service.get_sale(db, sale_id).status == SaleStatus.PAID


def test_close_without_stock_keeps_the_account_open(db, admin, make_product):
    pid = make_product(price=1000)
    account_id = _open(db, admin, pid, 1000)

    with pytest.raises(ConflictError, match="insufficient stock"):
        with transaction(db):
            layaway_service.close_layaway(db, admin, account_id)

    account = layaway_service.get_layaway(db, account_id)
    assert account.status == LayawayStatus.OPEN
    assert account.sale_id is None
    assert db.query(Payment).count() == 0


def test_remove_payment_rules(db, admin, make_product):
    pid = make_product(price=1000)
    account_id = _open(db, admin, pid, 300)
    payment_id = _pay(db, admin, account_id, 200)
    initial_id = layaway_service.get_layaway(db, account_id).payments[0].id

    with pytest.raises(ConflictError):
        with transaction(db):
            layaway_service.remove_layaway_payment(db, admin, account_id, initial_id)
    with pytest.raises(NotFoundError):
        with transaction(db):
            layaway_service.remove_layaway_payment(db, admin, account_id, 9999)

    with transaction(db):
        layaway_service.remove_layaway_payment(db, admin, account_id, payment_id)

    account = layaway_service.get_layaway(db, account_id)
    assert account.total_paid == Decimal("300")
    assert [p.id for p in account.payments] == [initial_id]


def test_list_filters_by_status_and_text(db, admin, make_product):
    pid = make_product(price=1000, stock=1)
    first = _open(db, admin, pid, 1000, customer="Carlos Ruiz")
    _open(db, admin, pid, 100, customer="Maria Lopez")
    with transaction(db):
        layaway_service.close_layaway(db, admin, first)

    assert [a.customer_name for a in layaway_service.list_layaways(db, status="open")] == ["MARIA LOPEZ"]
    assert [a.id for a in layaway_service.list_layaways(db, q="ruiz")] == [first]
    with pytest.raises(ValidationError):
        layaway_service.list_layaways(db, status="CANCELLED")


def test_store_day_scenario(db, admin, make_product):
    controller = make_product(price=5000)
    console = make_product(price=200000, cost=150000, stock=1)

    with transaction(db):
        ledger.stock_in(db, admin, controller, 10, 1000)
    assert ledger.compute_stock(db, controller) == 10

    with transaction(db):
        sales_service.commit_sale(
            db, admin,
            lines=[{"product_id": controller, "qty": 3, "unit_price": 5000}],
            payments=[{"method": "EFECTIVO", "amount": 15000}],
        )
    assert ledger.compute_stock(db, controller) == 7

    account_id = _open(db, admin, console, 50000)
    account = layaway_service.get_layaway(db, account_id)
    assert account.total_paid == Decimal("50000")
    assert account.balance == Decimal("150000")

    _pay(db, admin, account_id, 150000)
    account = layaway_service.get_layaway(db, account_id)
    assert account.total_paid == Decimal("200000")
    assert account.balance == Decimal("0")

    with transaction(db):
        layaway_service.close_layaway(db, admin, account_id)
    assert layaway_service.get_layaway(db, account_id).status == LayawayStatus.CLOSED
    assert ledger.compute_stock(db, console) == 0
    assert ledger.audit_stock(db) == []

    # el dinero del apartado se cuenta una sola vez
    today = date.today()
    report = reports.payments_by_method(db, today - timedelta(days=1), today + timedelta(days=1))
    assert report["sales"]["EFECTIVO"] == Decimal("15000")
    assert report["layaways"]["EFECTIVO"] == Decimal("200000")
    assert report["total"]["EFECTIVO"] == Decimal("215000")

    summary = reports.period_summary(db, today - timedelta(days=1), today + timedelta(days=1))
    assert summary["sales_count"] == 2
    assert summary["sales_total"] == Decimal("215000")
    assert summary["layaway_deposits"] == Decimal("200000")
