from typing import Any


def _value(log: dict[str, Any], key: str, default: str) -> str:
    value = log.get(key)
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def build_daily_log_context(log: dict[str, Any]) -> str:
    """Render the sections of a daily log that the summary is based on."""
    lines = [
        f"DAILY LOG - {log.get('date')}",
        "",
        "PLAN vs ACTUAL:",
        f"- Planned Harvest: {_value(log, 'plan_harvest', 'none')}",
        f"- Actual Harvest: {_value(log, 'done_harvest', 'none')}",
        f"- Planned Plant: {_value(log, 'plan_plant', 'none')}",
        f"- Actual Plant: {_value(log, 'done_plant', 'none')}",
        "",
        "SOP COMPLIANCE:",
        f"- Complete: {_value(log, 'sop_complete', 'N/A')}",
        f"- If NO - Missed: {_value(log, 'sop_missed', 'N/A')}",
        f"- Why: {_value(log, 'sop_why', 'N/A')}",
        "",
        "YIELD:",
        f"- On Target: {_value(log, 'yield_on_target', 'N/A')}",
        f"- Crop (if off): {_value(log, 'yield_crop', 'N/A')}",
        f"- Issue: {_value(log, 'yield_off_reason', 'N/A')}",
        f"- Action: {_value(log, 'yield_action', 'N/A')}",
        "",
        "TIME:",
        f"- {_value(log, 'time_start', 'N/A')} to {_value(log, 'time_end', 'N/A')}",
        f"- Biggest drain: {_value(log, 'time_drain', 'N/A')}",
        f"- Reason: {_value(log, 'time_why', 'N/A')}",
        "",
        "TOMORROW:",
        f"- Focus: {_value(log, 'tomorrow_focus', 'N/A')}",
        f"- Risk: {_value(log, 'tomorrow_risk', 'N/A')}",
    ]
    return "\n".join(lines)


def build_summary_prompt(log: dict[str, Any], farm_name: str) -> str:
    return (
        f"You are analyzing a daily farm operations log for {farm_name} microgreens farm.\n"
        "\n"
        f"{build_daily_log_context(log)}\n"
        "\n"
        "Provide a SHORT 2-3 sentence text message summary that includes:\n"
        "1. Overall status (✓ Green / ⚠ Yellow / ⚠ Red)\n"
        "2. Key issue if any\n"
        "3. One action if needed\n"
        "\n"
        "Keep it like a text message - concise and actionable. Include emoji."
    )


def build_sms_body(summary: str, farm_name: str) -> str:
    return f"{farm_name} Daily Log\n\n{summary}"
