import pytest

from statustray import registration
from statustray.errors import RegistrationStringError
from statustray.registration import ItemReference


@pytest.mark.parametrize(
    "sender, service, expected_path",
    [
        (":1.23", "app1", "/StatusNotifierItem"),
        (":1.23", "org.kde.StatusNotifierItem-4242-1", "/StatusNotifierItem"),
        (":1.45", "/org/ayatana/NotificationItem/nm_applet", "/org/ayatana/NotificationItem/nm_applet"),
        (":1.45", "/StatusNotifierItem", "/StatusNotifierItem"),
    ],
)
def test_encode_then_parse_recovers_sender_and_normalized_path(sender, service, expected_path):
    reference = registration.parse(registration.encode(sender, service))

    assert reference == ItemReference(bus_name=sender, object_path=expected_path)


def test_name_service_uses_default_item_path():
    assert registration.encode(":1.7", "org.example.App") == ":1.7/StatusNotifierItem"


def test_sender_containing_delimiter_is_rejected():
    with pytest.raises(RegistrationStringError):
        registration.encode(":1.7/evil", "/StatusNotifierItem")


@pytest.mark.parametrize("service", ["", "/bad path", "/trailing/", "app/1", "//double", "/x\n"])
def test_services_that_would_be_ambiguous_are_rejected(service):
    with pytest.raises(RegistrationStringError):
        registration.normalize_service(service)


@pytest.mark.parametrize("value", ["no-delimiter", "/StatusNotifierItem", ":1.2/bad-path!"])
def test_parse_rejects_malformed_strings(value):
    with pytest.raises(RegistrationStringError):
        registration.parse(value)


def test_parse_splits_on_first_delimiter_only():
    reference = registration.parse(":1.9/org/ayatana/Item")
    assert reference.bus_name == ":1.9"
    assert reference.object_path == "/org/ayatana/Item"
    assert str(reference) == ":1.9/org/ayatana/Item"


def test_parse_accepts_root_path():
    assert registration.parse(":1.9/").object_path == "/"


def test_name_services_from_one_sender_share_a_registration_string():
    first = registration.encode(":1.23", "app1")
    second = registration.encode(":1.23", "app2")

    assert first == second == ":1.23/StatusNotifierItem"
