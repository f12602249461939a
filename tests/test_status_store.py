from luco.models.payments import PaymentState, PaymentStatus


def test_register_pending(status_store):
    status_store.register_pending("FS-1")

    assert "FS-1" in status_store
    assert status_store.get("FS-1") == PaymentState(status=PaymentStatus.PENDING)


def test_set_overwrites_previous_state(status_store):
    status_store.register_pending("FS-1")
    status_store.set(
        "FS-1",
        PaymentState(status=PaymentStatus.FAILED, failure_reason="Insufficient funds"),
    )

    state = status_store.get("FS-1")
    assert state.status == PaymentStatus.FAILED
    assert state.failure_reason == "Insufficient funds"
    assert len(status_store) == 1


def test_unknown_reference(status_store):
    assert status_store.get("missing") is None
    assert "missing" not in status_store


def test_clear(status_store):
    status_store.register_pending("FS-1")
    status_store.register_pending("FS-2")

    status_store.clear()

    assert len(status_store) == 0


def test_gateway_status_decoding():
    assert PaymentStatus.from_gateway("succeeded") == PaymentStatus.SUCCESS
    assert PaymentStatus.from_gateway("SUCCESS") == PaymentStatus.SUCCESS
    assert PaymentStatus.from_gateway("failed") == PaymentStatus.FAILED
    assert PaymentStatus.from_gateway("processing") == PaymentStatus.PENDING
    assert PaymentStatus.from_gateway(None) == PaymentStatus.PENDING
    assert not PaymentStatus.PENDING.is_terminal
    assert PaymentStatus.FAILED.is_terminal
