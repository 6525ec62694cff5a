import json
from pathlib import Path

from wordsolve.vocab import WordCorpus


def load_corpus(path: str) -> WordCorpus:
    """
    Load a corpus from either a CSV (see `WordCorpus.from_csv`) or a directory
    holding `answers.json` and `allowed.json` (two JSON arrays of words).
    """
    p = Path(path)
    if p.is_dir():
        answers = json.loads((p / "answers.json").read_text(encoding="utf-8"))
        allowed_path = p / "allowed.json"
        allowed = json.loads(allowed_path.read_text(encoding="utf-8")) if allowed_path.exists() else []
        if not isinstance(answers, list) or not isinstance(allowed, list):
            raise ValueError(f"word list files in {path} must hold JSON arrays")
        return WordCorpus(answers, allowed)
    return WordCorpus.from_csv(str(p))
