from __future__ import annotations

import datetime as _dt
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Template

logger = logging.getLogger(__name__)


_REPORT_TEMPLATE = Template(
    """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>SubcloneCompat Report</title>
  <style>
    body { font-family: Arial, Helvetica, sans-serif; margin: 24px; }
    code, pre { background: #f6f8fa; padding: 2px 4px; border-radius: 4px; }
    h1, h2, h3 { margin-top: 1.2em; }
    table { border-collapse: collapse; margin-top: 0.6em; }
    th, td { border: 1px solid #ddd; padding: 8px; }
    th { background: #f2f2f2; text-align: left; }
    .grid { display: grid; grid-template-columns: 1fr 1fr; gap: 16px; }
    .card { border: 1px solid #ddd; border-radius: 8px; padding: 12px; }
    .small { color: #666; font-size: 0.9em; }
    .warn { color: #9a6700; }
    img { max-width: 100%; height: auto; border: 1px solid #eee; border-radius: 6px; }
  </style>
</head>
<body>

<h1>SubcloneCompat Report</h1>
<p class="small">Generated: {{ generated_at }}</p>

<h2>Run summary</h2>
<div class="grid">
  <div class="card">
    <h3>Inputs</h3>
    <table>
      <tr><th>Tree set 1</th><td><code>{{ set1_path }}</code></td></tr>
      <tr><th>Tree set 2</th><td><code>{{ set2_path }}</code></td></tr>
      <tr><th>Contig style</th><td><code>{{ contig_style }}</code></td></tr>
    </table>
  </div>
  <div class="card">
    <h3>Parameters</h3>
    <table>
      <tr><th>Boundary resolution (bp)</th><td>{{ resolution }}</td></tr>
      <tr><th>Direction</th><td>{{ "both directions" if mutual else "set 2 refines set 1" }}</td></tr>
    </table>
  </div>
</div>

<h2>Counts</h2>
<table>
  <tr><th>Trees in set 1</th><td>{{ counts.trees_set1 }}</td></tr>
  <tr><th>Trees in set 2</th><td>{{ counts.trees_set2 }}</td></tr>
  <tr><th>Pairs tested</th><td>{{ counts.pairs_total }}</td></tr>
  <tr><th>Compatible pairs</th><td>{{ counts.pairs_compatible }}</td></tr>
  <tr><th>Ambiguous node placements</th><td>{{ counts.ambiguous_placements }}</td></tr>
</table>

<h2>Compatible pairs</h2>
{% if compatible_pairs %}
<table>
  <tr><th>Set 1 tree</th><th>Set 2 tree</th></tr>
  {% for pair in compatible_pairs %}
  <tr><td><code>{{ pair.tree1 }}</code></td><td><code>{{ pair.tree2 }}</code></td></tr>
  {% endfor %}
</table>
{% else %}
<p>No pair of trees is compatible.</p>
{% endif %}

{% if warnings %}
<h2>Input warnings</h2>
<ul>
  {% for w in warnings %}
  <li class="warn">{{ w }}</li>
  {% endfor %}
</ul>
{% endif %}

{% if plots %}
<h2>Plots</h2>
<div class="grid">
  <div class="card">
    <h3>Pair compatibility</h3>
    <img src="{{ plots.compatibility_matrix }}" alt="compatibility matrix">
  </div>
  <div class="card">
    <h3>Remainder sizes</h3>
    <img src="{{ plots.remainder_sizes }}" alt="remainder size histogram">
  </div>
</div>
{% endif %}

<h2>Outputs</h2>
<ul>
  <li><code>{{ pairs_tsv }}</code> (all pairs)</li>
  <li><code>{{ compatible_pairs_tsv }}</code> (compatible pairs only)</li>
  <li><code>summary.json</code> (machine-readable summary)</li>
</ul>

<h2>Interpretation notes</h2>
<ul>
  <li>A pair is compatible when every subclone of the set-2 tree can be placed on the set-1 tree.</li>
  <li>Events closer than the boundary resolution are treated as the same event; this relation is not transitive.</li>
  <li>Ambiguous placements mean several sibling clades could host a subclone; the smallest remainder was chosen.</li>
</ul>

<hr>
<p class="small">SubcloneCompat {{ version }}</p>
</body>
</html>"""
)


def render_report(
    *,
    outdir: str | Path,
    version: str,
    summary: Dict[str, Any],
    plots: Optional[Dict[str, str]] = None,
) -> Path:
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    html = _REPORT_TEMPLATE.render(
        generated_at=_dt.datetime.now().isoformat(timespec="seconds"),
        version=version,
        set1_path=summary.get("set1_path"),
        set2_path=summary.get("set2_path"),
        contig_style=summary.get("contig_style"),
        resolution=summary.get("resolution"),
        mutual=summary.get("mutual"),
        counts=summary.get("counts", {}),
        compatible_pairs=summary.get("compatible_pairs", []),
        warnings=summary.get("warnings", []),
        pairs_tsv=summary.get("pairs_tsv"),
        compatible_pairs_tsv=summary.get("compatible_pairs_tsv"),
        plots=plots or {},
    )

    out_path = outdir / "report.html"
    out_path.write_text(html, encoding="utf-8")
    return out_path
