"""Runs one model-chosen operation against the ledger.

The executor is the trust boundary for model output: the untyped argument bag
is validated into the capability's argument model here, and every failure,
ours or a collaborator's, comes back as an ``OperationFailure`` instead of an
exception.
"""

from datetime import date
from decimal import Decimal
from typing import Callable

from loguru import logger
from pydantic import ValidationError

from chatledger.charts.service import ChartService
from chatledger.db.repository import ExpenseRepository
from chatledger.engine import aggregation
from chatledger.engine.capabilities import (
    ARGUMENT_MODELS,
    AddExpenseArgs,
    AllExpensesArgs,
    DailyChartArgs,
    DeleteExpenseArgs,
    ExpenseReportArgs,
    ExpensesByDateRangeArgs,
    LatestExpensesArgs,
    NoArguments,
    TotalByDateRangeArgs,
)
from chatledger.engine.periods import (
    format_calendar_date,
    parse_calendar_date,
    resolve_explicit_range,
    resolve_named_period,
)
from chatledger.errors import (
    ArgumentValidationError,
    ChatLedgerError,
    MissingArgumentError,
    NoDataError,
    NotFoundError,
)
from chatledger.models.schemas import (
    DateRange,
    LedgerRecord,
    OperationFailure,
    OperationRequest,
    OperationResult,
    OperationSuccess,
    normalize_category,
    to_cents,
)

_PERIOD_LABELS = {
    "today": "today",
    "this_week": "this week",
    "this_month": "this month",
    "last_week": "last week",
    "last_month": "last month",
    "all_time": "all time",
}


def _money(amount: Decimal) -> float:
    return float(to_cents(amount))


def _day_label(day: str) -> str:
    parsed = parse_calendar_date(day)
    return f"{parsed.strftime('%b')} {parsed.day}"


def _validation_error(name: str, exc: ValidationError) -> ArgumentValidationError:
    missing = [".".join(str(p) for p in err["loc"]) for err in exc.errors() if err["type"] == "missing"]
    if missing:
        return MissingArgumentError(f"{name} requires: {', '.join(missing)}")
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}" for err in exc.errors()
    )
    return ArgumentValidationError(f"Invalid arguments for {name}: {details}")


class OperationExecutor:
    def __init__(
        self,
        repo: ExpenseRepository,
        charts: ChartService,
        first_weekday: int = 6,
        latest_default_limit: int = 5,
        clock: Callable[[], date] = date.today,
    ):
        self.repo = repo
        self.charts = charts
        self.first_weekday = first_weekday
        self.latest_default_limit = latest_default_limit
        self.clock = clock
        self._handlers: dict[str, Callable] = {
            "add_expense": self._add_expense,
            "delete_expense": self._delete_expense,
            "get_total_expenses_today": self._total_today,
            "get_total_expenses_this_week": self._total_this_week,
            "get_total_expenses_this_month": self._total_this_month,
            "get_total_expenses_all_time": self._total_all_time,
            "get_latest_expenses": self._latest_expenses,
            "get_all_expenses": self._all_expenses,
            "get_expenses_by_date_range": self._expenses_by_date_range,
            "get_total_expenses_by_date_range": self._total_by_date_range,
            "generate_expense_report": self._expense_report,
            "generate_daily_expense_chart": self._daily_chart,
        }

    def execute(self, request: OperationRequest, owner_id: int) -> OperationResult:
        handler = self._handlers.get(request.name)
        model = ARGUMENT_MODELS.get(request.name)
        if handler is None or model is None:
            logger.warning("Unknown operation {} requested for owner #{}", request.name, owner_id)
            return self._failure(request, "unknown_operation", f"Unknown function: {request.name}")

        try:
            try:
                args = model.model_validate(request.arguments)
            except ValidationError as e:
                raise _validation_error(request.name, e) from e

            payload = handler(args, owner_id)
        except ChatLedgerError as e:
            logger.info("{} failed for owner #{}: {} ({})", request.name, owner_id, e.reason, e)
            return self._failure(request, e.reason, str(e))
        except ValidationError as e:
            logger.info("{} rejected for owner #{}: {}", request.name, owner_id, e)
            return self._failure(request, "invalid_argument", str(e))
        except Exception as e:
            logger.exception("{} crashed for owner #{}: {}", request.name, owner_id, e)
            return self._failure(request, "collaborator_error", f"Failed to run {request.name}")

        logger.info("{} succeeded for owner #{}", request.name, owner_id)
        return OperationSuccess(call_id=request.call_id, name=request.name, payload=payload)

    @staticmethod
    def _failure(request: OperationRequest, reason: str, message: str) -> OperationFailure:
        return OperationFailure(
            call_id=request.call_id, name=request.name, reason=reason, message=message
        )

    # ── helpers ────────────────────────────────────────────────────

    def _named_range(self, name: str) -> DateRange:
        return resolve_named_period(name, today=self.clock(), first_weekday=self.first_weekday)

    def _period_total(self, owner_id: int, name: str) -> dict:
        date_range = self._named_range(name)
        bucket = aggregation.summarize(self.repo.find_by_owner_and_range(owner_id, date_range))
        return {
            "total": _money(bucket.total),
            "count": bucket.count,
            "period": _PERIOD_LABELS[name],
            "startDate": date_range.start_text,
            "endDate": date_range.end_text,
        }

    # ── handlers ───────────────────────────────────────────────────

    def _add_expense(self, args: AddExpenseArgs, owner_id: int) -> dict:
        expense_date = parse_calendar_date(args.date) if args.date else self.clock()
        record = self.repo.create(
            LedgerRecord(
                owner_id=owner_id,
                amount=args.amount,
                description=args.description,
                category=args.category,
                date=expense_date,
            )
        )
        logger.info("Saved expense #{} dated {} for owner #{}", record.id, record.date_text, owner_id)

        monthly = self._period_total(owner_id, "this_month")
        return {
            "expense": record.to_payload(),
            "monthlyTotal": monthly["total"],
            "monthlyCount": monthly["count"],
        }

    def _delete_expense(self, args: DeleteExpenseArgs, owner_id: int) -> dict:
        expense_id = args.expense_id
        if expense_id is None:
            latest = self.repo.latest(owner_id, limit=1)
            if not latest:
                raise NotFoundError("No expenses found to delete")
            expense_id = latest[0].id

        if not self.repo.delete(expense_id, owner_id):
            raise NotFoundError(f"Expense {expense_id} not found or it belongs to someone else")
        return {"expenseId": expense_id, "message": f"Expense {expense_id} deleted successfully"}

    def _total_today(self, args: NoArguments, owner_id: int) -> dict:
        payload = self._period_total(owner_id, "today")
        return {"total": payload["total"], "count": payload["count"], "period": payload["period"]}

    def _total_this_week(self, args: NoArguments, owner_id: int) -> dict:
        return self._period_total(owner_id, "this_week")

    def _total_this_month(self, args: NoArguments, owner_id: int) -> dict:
        return self._period_total(owner_id, "this_month")

    def _total_all_time(self, args: NoArguments, owner_id: int) -> dict:
        bucket = aggregation.summarize(self.repo.find_by_owner(owner_id))
        return {
            "total": _money(bucket.total),
            "count": bucket.count,
            "period": _PERIOD_LABELS["all_time"],
        }

    def _latest_expenses(self, args: LatestExpensesArgs, owner_id: int) -> dict:
        records = self.repo.latest(owner_id, limit=args.limit or self.latest_default_limit)
        return {"expenses": [r.to_payload() for r in records], "count": len(records)}

    def _all_expenses(self, args: AllExpensesArgs, owner_id: int) -> dict:
        records = self.repo.find_by_owner(owner_id, limit=args.limit)
        return {
            "expenses": [r.to_payload() for r in records],
            "total": _money(aggregation.summarize(records).total),
            "count": len(records),
        }

    def _expenses_by_date_range(self, args: ExpensesByDateRangeArgs, owner_id: int) -> dict:
        date_range = resolve_explicit_range(args.start_date, args.end_date, today=self.clock())
        records = self.repo.find_by_owner_and_range(owner_id, date_range)
        if args.limit:
            records = records[: args.limit]
        return {
            "expenses": [r.to_payload() for r in records],
            "total": _money(aggregation.summarize(records).total),
            "count": len(records),
            "startDate": date_range.start_text,
            "endDate": date_range.end_text,
        }

    def _total_by_date_range(self, args: TotalByDateRangeArgs, owner_id: int) -> dict:
        date_range = resolve_explicit_range(args.start_date, args.end_date, today=self.clock())
        records = self.repo.find_by_owner_and_range(owner_id, date_range)
        category = normalize_category(args.category)
        if category:
            records = [r for r in records if r.category == category]

        bucket = aggregation.summarize(records)
        payload = {
            "total": _money(bucket.total),
            "count": bucket.count,
            "startDate": date_range.start_text,
            "endDate": date_range.end_text,
        }
        if category:
            payload["category"] = category
        return payload

    def _expense_report(self, args: ExpenseReportArgs, owner_id: int) -> dict:
        if args.period == "all_time":
            records = self.repo.find_by_owner(owner_id)
        else:
            records = self.repo.find_by_owner_and_range(owner_id, self._named_range(args.period))

        groups = aggregation.group_by_category(records)
        if not groups:
            raise NoDataError("No expenses found for the selected period")

        rows = aggregation.category_breakdown(groups)
        total = aggregation.summarize(records)
        chart_url = self.charts.render_pie(
            [row["category"].title() for row in rows],
            [row["total"] for row in rows],
            f"Expense Report - {_PERIOD_LABELS[args.period].title()}",
        )
        return {
            "chartUrl": chart_url,
            "period": args.period,
            "categoryData": rows,
            "total": _money(total.total),
            "totalCount": total.count,
        }

    def _daily_chart(self, args: DailyChartArgs, owner_id: int) -> dict:
        if args.start_date:
            date_range = resolve_explicit_range(args.start_date, args.end_date, today=self.clock())
            title = f"{date_range.start_text} to {date_range.end_text}"
        else:
            period = args.period or "this_month"
            date_range = self._named_range(period)
            title = _PERIOD_LABELS[period].title()

        days = aggregation.group_by_day(self.repo.find_by_owner_and_range(owner_id, date_range))
        if not days:
            raise NoDataError("No expenses found for the selected period")

        total = sum((day.total for day in days), Decimal("0"))
        chart_url = self.charts.render_bar(
            [_day_label(day.date) for day in days],
            [_money(day.total) for day in days],
            f"Daily Expenses - {title}",
        )
        return {
            "chartUrl": chart_url,
            "dailyData": [day.to_payload() for day in days],
            "total": _money(total),
            "startDate": format_calendar_date(date_range.start),
            "endDate": format_calendar_date(date_range.end),
        }
