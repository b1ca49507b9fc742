import threading

from eventhub.auth_service.context import AuthContext
from eventhub.models import AuthUser


def test_loading_until_initial_session_resolves(fake_backend):
    ctx = AuthContext(fake_backend)
    assert ctx.is_loading
    assert ctx.current_user is None

    ctx.start()
    assert ctx.wait_until_ready(5)

    assert not ctx.is_loading
    assert ctx.current_user is None
    ctx.stop()


def test_initial_session_sets_user(fake_backend):
    fake_backend.session_user = AuthUser(id="u1", email="a@example.com")

    with AuthContext(fake_backend) as ctx:
        assert ctx.wait_until_ready(5)
        assert ctx.current_user == AuthUser(id="u1", email="a@example.com")


def test_failed_initial_fetch_reads_as_no_user(fake_backend):
    fake_backend.session_user = AuthUser(id="u1")
    fake_backend.fail_on("auth", "session", "network down")

    with AuthContext(fake_backend) as ctx:
        assert ctx.wait_until_ready(5)
        assert not ctx.is_loading
        assert ctx.current_user is None


def test_auth_events_update_user(fake_backend):
    user = fake_backend.add_account("a@example.com", "pw")

    with AuthContext(fake_backend) as ctx:
        ctx.wait_until_ready(5)

        fake_backend.sign_in_with_password("a@example.com", "pw")
        assert ctx.current_user == user

        fake_backend.sign_out()
        assert ctx.current_user is None
        # Loading never comes back after the first resolution.
        assert not ctx.is_loading


def test_auth_event_wins_over_late_initial_fetch(fake_backend, mocker):
    release = threading.Event()
    user = AuthUser(id="u2", email="late@example.com")

    def slow_session():
        release.wait(5)
        return None

    mocker.patch.object(fake_backend, "get_session_user", side_effect=slow_session)

    ctx = AuthContext(fake_backend)
    ctx.start()
    assert ctx.is_loading

    fake_backend.session_user = user
    fake_backend._emit("SIGNED_IN")
    release.set()
    assert ctx.wait_until_ready(5)

    assert ctx.current_user == user
    ctx.stop()


def test_stop_releases_subscription(fake_backend):
    ctx = AuthContext(fake_backend)
    ctx.start()
    ctx.start()
    assert len(fake_backend.subscriptions) == 1
    assert ctx.is_started

    ctx.stop()
    ctx.stop()

    assert fake_backend.subscriptions == []
    assert not ctx.is_started
