from typing import Sequence

import pandas as pd

from ..data_model import FinancialPlan, PlanMonthlyBreakdown

REQUIRED_COLUMNS = {"Plan", "MonthIndex", "CalendarYear", "MonthInYear"}
FLOW_COLUMNS = ["ProjectedIncome", "TotalProjectedExpenses", "NetAmount", "InterestEarned"]


def breakdowns_to_frame(plan: FinancialPlan, rows: Sequence[PlanMonthlyBreakdown]) -> pd.DataFrame:
    records = []
    for row in sorted(rows, key=lambda r: r.month_index):
        month_date = plan.month_date(row.month_index)
        records.append(
            {
                "Plan": plan.name,
                "MonthIndex": row.month_index,
                "Month": plan.month_label(row.month_index),
                "CalendarYear": month_date.year,
                "MonthInYear": month_date.month,
                "ProjectedIncome": row.projected_income,
                "FixedExpenses": row.fixed_expenses,
                "AverageExpenses": row.average_expenses,
                "TotalProjectedExpenses": row.total_projected_expenses,
                "NetAmount": row.net_amount,
                "InterestEarned": row.interest_earned,
                "CumulativeNet": row.cumulative_net,
            }
        )
    return pd.DataFrame(records)


def _prepare(df: pd.DataFrame) -> pd.DataFrame:
    missing = REQUIRED_COLUMNS.difference(df.columns)
    if missing:
        raise KeyError(f"Missing required columns: {', '.join(sorted(missing))}")
    return df.sort_values(["Plan", "MonthIndex"]).copy()


def _collapse(df: pd.DataFrame) -> pd.DataFrame:
    # flows add up over the period, balances take the period's closing value
    grouped = df.groupby(["Plan", "PeriodValue"], as_index=False)
    closing = grouped.last()
    totals = grouped[FLOW_COLUMNS].sum()
    closing[FLOW_COLUMNS] = totals[FLOW_COLUMNS].to_numpy()
    return closing


def aggregate_period(df: pd.DataFrame, freq: str = "M") -> pd.DataFrame:
    """Aggregate monthly breakdown rows to monthly/quarterly/yearly periods."""
    if df.empty:
        return df

    freq = (freq or "M").upper()
    df = _prepare(df)

    if freq == "Q":
        df["PeriodValue"] = df["CalendarYear"] * 4 + (df["MonthInYear"] - 1) // 3
        quarter = ((df["MonthInYear"] - 1) // 3 + 1).astype(int)
        df["Period"] = df["CalendarYear"].astype(str) + " Q" + quarter.astype(str)
        return _collapse(df)

    if freq == "Y":
        df["PeriodValue"] = df["CalendarYear"]
        df["Period"] = df["CalendarYear"].astype(str)
        return _collapse(df)

    df["PeriodValue"] = df["MonthIndex"]
    df["Period"] = df.get("Month", df["MonthIndex"].astype(str))
    return df
