from seva.services.notifier import Navigator, Notifier


def test_notifier_fans_out_and_keeps_history():
    notifier = Notifier(history_size=2)
    received = []
    unsubscribe = notifier.subscribe(received.append)

    notifier.success("saved")
    notifier.error("failed")
    unsubscribe()
    notifier.error("ignored by listener")

    assert [(n.level, n.message) for n in received] == [("success", "saved"), ("error", "failed")]
    assert [n.message for n in notifier.history] == ["failed", "ignored by listener"]


def test_navigator_redirects_once_from_app_views():
    visited = []
    navigator = Navigator("/expenses", on_navigate=visited.append)

    assert navigator.redirect_to_entry() is True
    assert navigator.path == "/"
    assert visited == ["/"]


def test_navigator_stays_on_login_views():
    navigator = Navigator("/login/verify")
    assert navigator.redirect_to_entry() is False
    assert navigator.path == "/login/verify"
