from statustray.types import Category, Status, Unrecognized, resolve


def test_known_category_strings_map_to_members():
    assert Category.from_wire("ApplicationStatus") is Category.APPLICATION_STATUS
    assert Category.from_wire("Communications") is Category.COMMUNICATIONS
    assert Category.from_wire("SystemServices") is Category.SYSTEM_SERVICES
    assert Category.from_wire("Hardware") is Category.HARDWARE
    assert Category.from_wire("Unknown") is Category.UNKNOWN


def test_unknown_category_is_observable_and_falls_back_to_unknown():
    value = Category.from_wire("Games")
    assert value == Unrecognized("Games", Category.UNKNOWN)
    assert resolve(value) is Category.UNKNOWN
    assert value.to_wire() == "Games"


def test_unknown_status_is_distinguishable_from_passive():
    known = Status.from_wire("Passive")
    unknown = Status.from_wire("Blinking")

    assert known is Status.PASSIVE
    assert isinstance(unknown, Unrecognized)
    assert unknown != known
    assert resolve(unknown) is Status.PASSIVE


def test_wire_round_trip_for_members():
    for member in list(Status) + list(Category):
        assert type(member).from_wire(member.to_wire()) is member
    assert str(Status.NEEDS_ATTENTION) == "NeedsAttention"


def test_resolve_passes_members_through():
    assert resolve(Status.ACTIVE) is Status.ACTIVE


def test_unrecognized_prints_as_the_wire_string():
    assert str(Status.from_wire("Blinking")) == "Blinking"
    assert f"{Category.from_wire('Games')}" == "Games"
