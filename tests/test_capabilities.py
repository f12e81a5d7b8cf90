"""Tests for the capability catalog and its tool rendering."""

from chatledger.engine.capabilities import (
    ARGUMENT_MODELS,
    CATALOG,
    get_capability,
    list_capabilities,
    openai_tools,
)


def test_catalog_order_is_stable() -> None:
    names = [c.name for c in list_capabilities()]

    assert names == [c.name for c in list_capabilities()]
    assert names[:2] == ["add_expense", "delete_expense"]
    assert names[-2:] == ["generate_expense_report", "generate_daily_expense_chart"]
    assert len(names) == len(set(names)) == 12


def test_every_capability_has_an_argument_model() -> None:
    assert set(ARGUMENT_MODELS) == {c.name for c in CATALOG}


def test_declared_arguments_match_argument_models() -> None:
    for descriptor in CATALOG:
        model = ARGUMENT_MODELS[descriptor.name]
        required = {name for name, field in model.model_fields.items() if field.is_required()}

        assert set(descriptor.arguments) == set(model.model_fields), descriptor.name
        assert set(descriptor.required_arguments) == required, descriptor.name


def test_openai_tools_shape() -> None:
    tools = openai_tools()
    add = tools[0]["function"]

    assert all(tool["type"] == "function" for tool in tools)
    assert add["name"] == "add_expense"
    assert add["parameters"]["required"] == ["amount"]
    assert add["parameters"]["properties"]["amount"]["type"] == "number"


def test_enums_are_rendered() -> None:
    report = next(t for t in openai_tools() if t["function"]["name"] == "generate_expense_report")

    assert report["function"]["parameters"]["properties"]["period"]["enum"] == [
        "this_month",
        "this_week",
        "all_time",
    ]


def test_get_capability() -> None:
    assert get_capability("get_latest_expenses").arguments["limit"].type == "integer"
    assert get_capability("missing") is None


def test_list_capabilities_returns_a_copy() -> None:
    listed = list_capabilities()
    listed.clear()

    assert len(list_capabilities()) == len(CATALOG)
