from __future__ import annotations

import json
import urllib.error
import urllib.request
from pathlib import Path

from .config import ReviewConfig

SYSTEM_PROMPT = (
    "You are a senior engineering lead. Review the following git activity report. "
    "Summarize what the team worked on, point out notable patterns in contributors, "
    "file types and churn, and flag anything that looks risky or unusual. "
    "Answer in Markdown."
)

REVIEW_HEADING = "## AI review"


class ReviewError(RuntimeError):
    pass


def chat_completions_url(base_url: str) -> str:
    return base_url.rstrip("/") + "/chat/completions"


def _first_choice_content(payload: str) -> str:
    try:
        obj = json.loads(payload)
        content = obj["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise ReviewError(f"review failed: unexpected response: {payload[:500]}") from e
    return str(content or "").strip()


def review_report(content: str, review: ReviewConfig) -> str:
    if not review.api_key.strip():
        raise ReviewError("review failed: no API key configured")

    body = json.dumps(
        {
            "model": review.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": content},
            ],
        }
    ).encode("utf-8")
    req = urllib.request.Request(
        chat_completions_url(review.base_url),
        method="POST",
        data=body,
        headers={
            "Content-Type": "application/json",
            "Authorization": f"Bearer {review.api_key}",
        },
    )
    try:
        with urllib.request.urlopen(req, timeout=review.timeout_s) as resp:
            code = int(getattr(resp, "status", 0) or 0)
            payload = resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as e:
        payload = ""
        try:
            payload = e.read().decode("utf-8", errors="replace")
        except OSError:
            payload = ""
        raise ReviewError(f"review failed: HTTP {e.code}: {payload[:500]}") from e
    except urllib.error.URLError as e:
        raise ReviewError(f"review failed: {e}") from e

    if not 200 <= code < 300:
        raise ReviewError(f"review failed: HTTP {code}: {payload[:500]}")
    return _first_choice_content(payload)


def review_path_for(report_path: Path) -> Path:
    return report_path.with_name(f"{report_path.stem}_review{report_path.suffix}")


def write_review(report_path: Path, review_text: str) -> Path:
    report = report_path.read_text(encoding="utf-8")
    out = review_path_for(report_path)
    out.write_text(report.rstrip("\n") + "\n\n" + REVIEW_HEADING + "\n\n" + review_text.strip() + "\n", encoding="utf-8")
    return out


def review_file(report_path: Path, review: ReviewConfig) -> Path | None:
    """
    Review an existing report and write the reviewed copy next to it.

    Returns None (after printing why) when review is disabled or no API key is
    configured. HTTP failures propagate as ReviewError.
    """
    if not review.enabled:
        print("Review: disabled (enable with --review or review.enabled in the config).")
        return None
    if not review.api_key.strip():
        print("Review: skipped, no API key configured (set OPENAI_API_KEY or review.api_key).")
        return None
    print(f"Review: requesting review of {report_path.name} from {review.model}...")
    text = review_report(report_path.read_text(encoding="utf-8"), review)
    out = write_review(report_path, text)
    print(f"Review: wrote {out}")
    return out
