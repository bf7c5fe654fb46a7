from .formatting import format_currency, format_decimal
from .models import GlobalSummary


def make_summary_text(summary: GlobalSummary) -> str:
    return (
        f"Projects analysed: {summary.total_projects:,} ({summary.date_range}).\n"
        f"Contractors: {summary.total_contractors:,} | Provinces: {summary.total_provinces:,}"
        f" | Regions: {summary.total_regions:,}\n"
        f"Total approved budget: PHP {format_currency(summary.global_total_budget)}.\n"
        f"Total savings (budget less contract cost): PHP {format_currency(summary.global_total_savings)}.\n"
        f"Average completion delay: {format_decimal(summary.global_avg_delay)} days.\n"
    )
