# src/storage/layout.py — v2
"""Path conventions for cache snapshots and mirrored translation output.

Cache:   {cache_root}/{language}_p{projectId}[_f{fileId}].json
Mirror:  {output_dir}/{language}/file_{fileId}.json
         {output_dir}/{language}/project_translation.json   (no file id)

Scopes are composite keys everywhere else; strings are derived only here.
"""

from __future__ import annotations

from pathlib import Path

from transnorm.core.models import TranslationScope

CACHE_SUFFIX = ".json"
PROJECT_TRANSLATION_FILE = "project_translation.json"


def escape_language(language_code: str) -> str:
    """Percent-escape "_" so the _p/_f markers stay unambiguous (zh_CN -> zh%5FCN)."""
    return language_code.replace("_", "%5F")


def scope_storage_id(scope: TranslationScope) -> str:
    """Deterministic storage identifier for a scope, e.g. ``de_p7_f12``."""
    storage_id = f"{escape_language(scope.language_code)}_p{scope.project_id}"
    if scope.file_id is not None:
        storage_id += f"_f{scope.file_id}"
    return storage_id


def cache_file(cache_root: Path, scope: TranslationScope) -> Path:
    """Return the snapshot file for a scope."""
    return cache_root / f"{scope_storage_id(scope)}{CACHE_SUFFIX}"


def translation_output_path(language_code: str, file_id: int | None = None) -> str:
    """Relative path of the mirrored EnhancedTranslation for a language/file."""
    name = f"file_{file_id}.json" if file_id is not None else PROJECT_TRANSLATION_FILE
    return f"{language_code}/{name}"
