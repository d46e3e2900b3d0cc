from datetime import datetime, timedelta, timezone

from models import Branch, Credential, utc_now


def test_utc_now_is_timezone_aware():
    assert utc_now().utcoffset() == timedelta(0)


def test_timestamps_read_back_as_utc(session):
    branch = Branch(name="Centro")
    session.add(branch)
    session.commit()
    created = branch.created_at

    session.expire_all()
    reloaded = session.get(Branch, branch.id)

    assert reloaded.created_at.tzinfo is not None
    assert reloaded.created_at == created


def test_offset_and_naive_values_are_stored_as_utc(session):
    buenos_aires = timezone(timedelta(hours=-3))
    aware = Credential(
        email="a@example.com", password_hash="x",
        locked_until=datetime(2026, 1, 1, 9, 0, tzinfo=buenos_aires),
    )
    naive = Credential(email="b@example.com", password_hash="x", locked_until=datetime(2026, 1, 1, 12, 0))
    session.add(aware)
    session.add(naive)
    session.commit()

    session.expire_all()
    expected = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert session.get(Credential, aware.id).locked_until == expected
    assert session.get(Credential, naive.id).locked_until == expected
