"""Operations the chat model may call, and the typed arguments each one takes.

``CATALOG`` is what the model sees (names, hints, argument schema).
``ARGUMENT_MODELS`` is what the executor trusts: every argument bag is
validated into one of these models before anything touches the ledger.
"""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from chatledger.models.schemas import ArgumentSpec, CapabilityDescriptor

ReportPeriod = Literal["this_month", "this_week", "all_time"]
ChartPeriod = Literal["this_month", "this_week", "last_month", "last_week"]


class _Arguments(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class NoArguments(_Arguments):
    pass


class AddExpenseArgs(_Arguments):
    amount: Decimal = Field(gt=0)
    description: str | None = None
    category: str | None = None
    date: str | None = None


class DeleteExpenseArgs(_Arguments):
    expense_id: int | None = None


class LatestExpensesArgs(_Arguments):
    limit: int | None = Field(default=None, ge=1)


class AllExpensesArgs(_Arguments):
    limit: int | None = Field(default=None, ge=1)


class ExpensesByDateRangeArgs(_Arguments):
    start_date: str
    end_date: str | None = None
    limit: int | None = Field(default=None, ge=1)


class TotalByDateRangeArgs(_Arguments):
    start_date: str
    end_date: str | None = None
    category: str | None = None


class ExpenseReportArgs(_Arguments):
    period: ReportPeriod = "this_month"


class DailyChartArgs(_Arguments):
    period: ChartPeriod | None = None
    start_date: str | None = None
    end_date: str | None = None


_START_DATE_HINT = (
    "Start date in YYYY-MM-DD format. Calculate it from the user's request "
    "(e.g. yesterday, last week) using today's date as the reference."
)
_END_DATE_HINT = "End date in YYYY-MM-DD format. Defaults to today when omitted."


CATALOG: tuple[CapabilityDescriptor, ...] = (
    CapabilityDescriptor(
        name="add_expense",
        description=(
            "Add a new expense to the tracker. Use this when the user wants to record a new expense."
        ),
        arguments={
            "amount": ArgumentSpec(
                type="number",
                required=True,
                description="The monetary amount of the expense (required, must be positive)",
            ),
            "description": ArgumentSpec(
                type="string", description="A brief description of what the expense was for"
            ),
            "category": ArgumentSpec(
                type="string",
                description="Category of the expense (e.g. food, transport, shopping, bills, entertainment)",
            ),
            "date": ArgumentSpec(
                type="string",
                description="Date of the expense in YYYY-MM-DD format. Omit it for today",
            ),
        },
    ),
    CapabilityDescriptor(
        name="delete_expense",
        description=(
            "Delete or remove an expense. Use this when the user wants to delete an expense by ID, "
            "or delete the latest expense."
        ),
        arguments={
            "expense_id": ArgumentSpec(
                type="integer",
                description="The ID of the expense to delete. If not provided, the most recent expense is deleted.",
            ),
        },
    ),
    CapabilityDescriptor(
        name="get_total_expenses_today",
        description="Get the total amount and count of expenses for today",
    ),
    CapabilityDescriptor(
        name="get_total_expenses_this_week",
        description=(
            "Get the total amount and count of expenses for this week. Use this ONLY when the user asks "
            "for this week's total WITHOUT naming a category. For a category (e.g. \"food this week\") "
            "use get_total_expenses_by_date_range with the category argument instead."
        ),
    ),
    CapabilityDescriptor(
        name="get_total_expenses_this_month",
        description="Get the total amount and count of expenses for this month",
    ),
    CapabilityDescriptor(
        name="get_total_expenses_all_time",
        description=(
            "Get the total amount of all expenses ever recorded. Use this when the user asks for "
            "\"total expense\", \"total spending\", \"how much did I spend in total\", etc."
        ),
    ),
    CapabilityDescriptor(
        name="get_latest_expenses",
        description=(
            "Get the most recent expenses. Use this when the user asks for \"latest\", \"recent\" "
            "or \"last\" expenses"
        ),
        arguments={
            "limit": ArgumentSpec(type="integer", description="Number of expenses to return (default: 5)"),
        },
    ),
    CapabilityDescriptor(
        name="get_all_expenses",
        description=(
            "Get all expenses with details. Use this when the user wants to see the list of expenses, "
            "not just the total."
        ),
        arguments={
            "limit": ArgumentSpec(
                type="integer", description="Optional limit on number of expenses to return"
            ),
        },
    ),
    CapabilityDescriptor(
        name="get_expenses_by_date_range",
        description=(
            "List expenses within a date range. Use this when the user asks for expenses for "
            "\"yesterday\", \"last week\", \"last month\", \"between dates\" or any specific range."
        ),
        arguments={
            "start_date": ArgumentSpec(type="string", required=True, description=_START_DATE_HINT),
            "end_date": ArgumentSpec(type="string", description=_END_DATE_HINT),
            "limit": ArgumentSpec(
                type="integer", description="Optional limit on number of expenses to return"
            ),
        },
    ),
    CapabilityDescriptor(
        name="get_total_expenses_by_date_range",
        description=(
            "Get the total spent within a date range, optionally for one category. Use this for totals "
            "over \"yesterday\", \"last week\", \"last month\" or a specific range, and whenever the "
            "user names a category (e.g. \"how much on food this week\")."
        ),
        arguments={
            "start_date": ArgumentSpec(type="string", required=True, description=_START_DATE_HINT),
            "end_date": ArgumentSpec(type="string", description=_END_DATE_HINT),
            "category": ArgumentSpec(
                type="string",
                description="Optional category to filter by (e.g. \"food\", \"transport\")",
            ),
        },
    ),
    CapabilityDescriptor(
        name="generate_expense_report",
        description=(
            "Generate an expense report with a PIE chart of spending by category. Use this for "
            "\"report\", \"expense report\", \"pie chart\", \"category chart\" or \"spending by category\"."
        ),
        arguments={
            "period": ArgumentSpec(
                type="string",
                enum=("this_month", "this_week", "all_time"),
                description="Time period for the report. Default is \"this_month\"",
            ),
        },
    ),
    CapabilityDescriptor(
        name="generate_daily_expense_chart",
        description=(
            "Generate a BAR chart of spending per day. ALWAYS use this when the request mentions "
            "\"daily\" (daily expenses, daily spending, daily breakdown, expenses by day) or asks for a "
            "bar chart."
        ),
        arguments={
            "period": ArgumentSpec(
                type="string",
                enum=("this_month", "this_week", "last_month", "last_week"),
                description="Time period for the chart. Default is \"this_month\"",
            ),
            "start_date": ArgumentSpec(
                type="string", description="Start date in YYYY-MM-DD format for a custom range"
            ),
            "end_date": ArgumentSpec(
                type="string", description="End date in YYYY-MM-DD format for a custom range"
            ),
        },
    ),
)

ARGUMENT_MODELS: dict[str, type[_Arguments]] = {
    "add_expense": AddExpenseArgs,
    "delete_expense": DeleteExpenseArgs,
    "get_total_expenses_today": NoArguments,
    "get_total_expenses_this_week": NoArguments,
    "get_total_expenses_this_month": NoArguments,
    "get_total_expenses_all_time": NoArguments,
    "get_latest_expenses": LatestExpensesArgs,
    "get_all_expenses": AllExpensesArgs,
    "get_expenses_by_date_range": ExpensesByDateRangeArgs,
    "get_total_expenses_by_date_range": TotalByDateRangeArgs,
    "generate_expense_report": ExpenseReportArgs,
    "generate_daily_expense_chart": DailyChartArgs,
}

_BY_NAME = {descriptor.name: descriptor for descriptor in CATALOG}


def list_capabilities() -> list[CapabilityDescriptor]:
    return list(CATALOG)


def get_capability(name: str) -> CapabilityDescriptor | None:
    return _BY_NAME.get(name)


def openai_tools() -> list[dict]:
    """The catalog in the shape of the chat completions ``tools`` parameter."""
    tools = []
    for descriptor in CATALOG:
        properties = {}
        for arg_name, spec in descriptor.arguments.items():
            schema: dict = {"type": spec.type, "description": spec.description}
            if spec.enum:
                schema["enum"] = list(spec.enum)
            properties[arg_name] = schema
        tools.append(
            {
                "type": "function",
                "function": {
                    "name": descriptor.name,
                    "description": descriptor.description,
                    "parameters": {
                        "type": "object",
                        "properties": properties,
                        "required": descriptor.required_arguments,
                    },
                },
            }
        )
    return tools
