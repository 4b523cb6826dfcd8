from typing import List, Optional, Sequence

import pandas as pd

from cvmatch.models.models import MatchResult

COLUMNS = ["rank", "candidate_index", "name", "match_percentage", "error_code", "overall_analysis"]


def results_to_frame(results: Sequence[MatchResult], names: Optional[List[str]] = None) -> pd.DataFrame:
    """Tabulate ranked results, best first; names are looked up by candidate_index."""
    names = names or []
    data = [{
        "candidate_index": r.candidate_index,
        "name": names[r.candidate_index] if r.candidate_index < len(names) and names[r.candidate_index] else f"CV {r.candidate_index + 1}",
        "match_percentage": round(r.match_percentage, 2),
        "error_code": r.failure.error_code if r.failure else "",
        "overall_analysis": r.analysis.overall_analysis if r.analysis else "",
    } for r in results]

    df = pd.DataFrame(data, columns=COLUMNS[1:])
    if len(df):
        df = df.sort_values("match_percentage", ascending=False, kind="stable").reset_index(drop=True)
    df.insert(0, "rank", range(1, len(df) + 1))
    return df


def render_csv_report(results: Sequence[MatchResult], names: Optional[List[str]] = None) -> str:
    return results_to_frame(results, names).to_csv(index=False)


def render_markdown_report(
    results: Sequence[MatchResult],
    names: Optional[List[str]] = None,
    title: str = "CV Match Ranking",
    job_language: Optional[str] = None,
) -> str:
    df = results_to_frame(results, names)

    md_lines = [f"# {title}"]
    if job_language:
        md_lines.append(f"**Job description language**: {job_language}\n")

    if not len(df):
        md_lines.append("> No candidates were ranked.\n")
        return "\n".join(md_lines)

    md_lines += [
        "| Rank | CV | Match % |",
        "|---:|---|---:|",
    ]
    for r in df.itertuples():
        md_lines.append(f"| {r.rank} | {r.name} | {r.match_percentage:.2f} |")

    failed = df[df["error_code"] != ""]
    if len(failed):
        md_lines.append("\n---\nFailed CVs:")
        for r in failed.itertuples():
            md_lines.append(f"- **{r.name}** ({r.error_code}): {r.overall_analysis}")

    return "\n".join(md_lines)
