"""HTML assessment report generator for EngageRisk.

Renders one assessment as a self-contained, single-file HTML document
with inline CSS. Reasons are listed exactly as the engine produced them.
Uses Jinja2 templating.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from jinja2 import Environment

from engagerisk_shared.constants.constants import MAX_SCORE
from engagerisk_shared.types.models import AssessmentRecord

from engagerisk.privacy import mask_email

logger = logging.getLogger(__name__)

# ─── Inline HTML template (no external files needed) ─────────────────────────

_HTML_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Contractor Compliance Risk Report: {{ country }} / {{ contract_type }}</title>
<style>
:root {
  --bg: #f8fafc;
  --surface: #ffffff;
  --border: #e2e8f0;
  --text: #0f172a;
  --muted: #64748b;
  --low: #16a34a;
  --medium: #d97706;
  --high: #dc2626;
  --font: 'Inter', -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
}
* { margin: 0; padding: 0; box-sizing: border-box; }
body { font-family: var(--font); background: var(--bg); color: var(--text); line-height: 1.6; }
.container { max-width: 820px; margin: 0 auto; padding: 2rem; }
h1 { font-size: 1.6rem; margin-bottom: 0.25rem; }
h2 { font-size: 1.1rem; margin-bottom: 0.75rem; }
.meta { color: var(--muted); font-size: 0.85rem; }
.card {
  background: var(--surface);
  border: 1px solid var(--border);
  border-radius: 10px;
  padding: 1.5rem;
  margin-top: 1.5rem;
}
.score { display: flex; align-items: baseline; gap: 1rem; }
.score .value { font-size: 3rem; font-weight: 700; }
.score .scale { color: var(--muted); }
.level {
  display: inline-block;
  padding: 0.2em 0.8em;
  border-radius: 999px;
  color: #fff;
  font-weight: 600;
  text-transform: uppercase;
  font-size: 0.8rem;
}
.level-low { background: var(--low); }
.level-medium { background: var(--medium); }
.level-high { background: var(--high); }
.meter { height: 10px; background: var(--border); border-radius: 5px; overflow: hidden; margin-top: 1rem; }
.meter div { height: 100%; }
table { width: 100%; border-collapse: collapse; }
td { padding: 0.5rem 0; border-bottom: 1px solid var(--border); font-size: 0.9rem; }
td:first-child { color: var(--muted); width: 45%; }
ol { padding-left: 1.25rem; }
li { margin-bottom: 0.4rem; }
.footer { text-align: center; color: var(--muted); font-size: 0.75rem; margin-top: 2rem; }
</style>
</head>
<body>
<div class="container">

<h1>Contractor Compliance Risk Report</h1>
<div class="meta">Assessment {{ assessment_id }} · {{ assessed_at }}{% if submitted_by %} · {{ submitted_by }}{% endif %}</div>

<div class="card">
  <div class="score">
    <span class="value">{{ score }}</span>
    <span class="scale">/ {{ max_score }}</span>
    <span class="level level-{{ level|lower }}">{{ level }} risk</span>
  </div>
  <div class="meter">
    <div class="level-{{ level|lower }}" style="width: {{ (score / max_score * 100)|round(1) }}%"></div>
  </div>
</div>

<div class="card">
  <h2>Engagement</h2>
  <table>
    <tr><td>Country</td><td>{{ country }}</td></tr>
    <tr><td>Contract type</td><td>{{ contract_type }}</td></tr>
    <tr><td>Contract value</td><td>${{ "{:,.0f}".format(contract_value) }}</td></tr>
    <tr><td>Personal data processing</td><td>{{ "Yes" if data_processing else "No" }}</td></tr>
  </table>
</div>

<div class="card">
  <h2>Why this score</h2>
  <ol>
    {% for reason in reasons %}<li>{{ reason }}</li>{% endfor %}
  </ol>
</div>

<div class="footer">
  Generated by EngageRisk · {{ generated_at }} · This report is guidance, not legal advice.
</div>

</div>
</body>
</html>
"""

_CONTRACT_TYPE_LABELS = {
    "independent": "Independent contractor",
    "agency": "Staffing agency",
    "eor": "Employer of Record",
    "unknown": "Unspecified",
}


class HTMLReportGenerator:
    """Generates self-contained HTML reports for single assessments."""

    def __init__(self, mask_submitter: bool = True):
        self.mask_submitter = mask_submitter
        self._env = Environment(autoescape=True)
        self._template = self._env.from_string(_HTML_TEMPLATE)

    def generate(self, record: AssessmentRecord) -> str:
        """Render an assessment as HTML.

        Args:
            record: The stored assessment.

        Returns:
            Self-contained HTML string.
        """
        submitted_by = mask_email(record.email) if self.mask_submitter else record.email

        context = {
            "assessment_id": record.id,
            "assessed_at": record.timestamp.strftime("%Y-%m-%d %H:%M %Z").strip(),
            "generated_at": datetime.now(tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
            "submitted_by": submitted_by if record.email else "",
            "score": record.score,
            "max_score": MAX_SCORE,
            "level": record.level.value,
            "country": record.country or "Unknown",
            "contract_type": _CONTRACT_TYPE_LABELS.get(
                record.contract_type.value, record.contract_type.value
            ),
            "contract_value": record.contract_value_usd,
            "data_processing": record.data_processing,
            "reasons": record.reasons,
        }

        return self._template.render(**context)

    def generate_to_file(self, record: AssessmentRecord, output_path: str) -> str:
        """Generate HTML report and write to file.

        Returns:
            The resolved output file path.
        """
        html = self.generate(record)

        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(html, encoding="utf-8")

        logger.info("HTML report written to: %s", output_path)
        return str(path.resolve())
