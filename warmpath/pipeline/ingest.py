"""
Graph Export Ingestion

Loads a tabular graph snapshot (people, edges, evidence, organizations)
from CSV files into an in-memory data provider.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import pandas as pd
from pydantic import BaseModel, Field

from warmpath.graph.provider import InMemoryDataProvider
from warmpath.models.entities import (
    Edge,
    EvidenceEvent,
    EvidenceType,
    Organization,
    Person,
    RelationshipType,
    to_naive_utc,
)

logger = logging.getLogger(__name__)

LIST_SEPARATOR = ";"


class GraphExport(BaseModel):
    """Container for all loaded graph export data."""
    people: list[Person] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    evidence: list[EvidenceEvent] = Field(default_factory=list)
    organizations: list[Organization] = Field(default_factory=list)

    # Metadata
    source_directory: Optional[str] = None
    loaded_files: list[str] = Field(default_factory=list)
    skipped_files: list[str] = Field(default_factory=list)

    def to_provider(self) -> InMemoryDataProvider:
        """Build an in-memory data provider from the loaded records."""
        return InMemoryDataProvider(
            people=self.people,
            edges=self.edges,
            evidence=self.evidence,
            organizations=self.organizations,
        )


def _clean(value: Any) -> Optional[str]:
    """Normalize a cell to a stripped string, or None if empty."""
    if value is None or pd.isna(value):
        return None
    value = str(value).strip()
    return value or None


def _split_list(value: Any) -> list[str]:
    """Split a separator-delimited cell into a list."""
    cleaned = _clean(value)
    if cleaned is None:
        return []
    return [item.strip() for item in cleaned.split(LIST_SEPARATOR) if item.strip()]


def _parse_date(value: Any, formats: list[str] = None) -> Optional[datetime]:
    """Parse date string with multiple format support.

    ISO-8601 values with an offset (or a trailing "Z") come back as naive UTC.
    """
    date_str = _clean(value)
    if date_str is None:
        return None

    iso_str = date_str[:-1] + "+00:00" if date_str.endswith(("Z", "z")) else date_str
    try:
        return to_naive_utc(datetime.fromisoformat(iso_str))
    except ValueError:
        pass

    formats = formats or [
        "%d %b %Y",      # "15 Jan 2024"
        "%m/%d/%Y",      # US format
        "%d/%m/%Y",      # EU format
        "%B %d, %Y",     # "January 15, 2024"
    ]

    for fmt in formats:
        try:
            return datetime.strptime(date_str, fmt)
        except ValueError:
            continue

    logger.warning(f"Could not parse date: {date_str}")
    return None


def _read_table(filepath: Path) -> pd.DataFrame:
    df = pd.read_csv(filepath, dtype=str)
    df.columns = [col.strip().lower().replace(" ", "_") for col in df.columns]
    return df


def _load_people(filepath: Path) -> list[Person]:
    """Load people.csv file."""
    records = []
    df = _read_table(filepath)

    for _, row in df.iterrows():
        try:
            records.append(Person(
                id=_clean(row.get("id")),
                names=_split_list(row.get("names")),
                emails=_split_list(row.get("emails")),
                phones=_split_list(row.get("phones")),
                title=_clean(row.get("title")),
                organization_id=_clean(row.get("organization_id")),
                deleted_at=_parse_date(row.get("deleted_at")),
            ))
        except Exception as e:
            logger.warning(f"Skipping malformed person row: {e}")

    logger.info(f"Loaded {len(records)} people from {filepath.name}")
    return records


def _load_edges(filepath: Path) -> list[Edge]:
    """Load edges.csv file."""
    records = []
    df = _read_table(filepath)

    for _, row in df.iterrows():
        try:
            from_id = _clean(row.get("from_person_id"))
            to_id = _clean(row.get("to_person_id"))
            strength = _clean(row.get("strength"))
            count = _clean(row.get("interaction_count"))

            records.append(Edge(
                id=_clean(row.get("id")) or f"{from_id}:{to_id}",
                from_person_id=from_id,
                to_person_id=to_id,
                relationship_type=RelationshipType(
                    _clean(row.get("relationship_type")) or RelationshipType.KNOWS.value
                ),
                strength=float(strength) if strength is not None else None,
                channels=_split_list(row.get("channels")),
                sources=_split_list(row.get("sources")),
                first_seen_at=_parse_date(row.get("first_seen_at")),
                last_seen_at=_parse_date(row.get("last_seen_at")),
                interaction_count=int(float(count)) if count is not None else 0,
            ))
        except Exception as e:
            logger.warning(f"Skipping malformed edge row: {e}")

    logger.info(f"Loaded {len(records)} edges from {filepath.name}")
    return records


def _load_evidence(filepath: Path) -> list[EvidenceEvent]:
    """Load evidence.csv file."""
    records = []
    df = _read_table(filepath)

    for index, row in df.iterrows():
        try:
            timestamp = _parse_date(row.get("timestamp"))
            if timestamp is None:
                raise ValueError("missing timestamp")

            records.append(EvidenceEvent(
                id=_clean(row.get("id")) or f"evidence_{index}",
                subject_person_id=_clean(row.get("subject_person_id")),
                object_person_id=_clean(row.get("object_person_id")),
                type=EvidenceType(_clean(row.get("type"))),
                timestamp=timestamp,
                source=_clean(row.get("source")) or "unknown",
            ))
        except Exception as e:
            logger.warning(f"Skipping malformed evidence row: {e}")

    logger.info(f"Loaded {len(records)} evidence events from {filepath.name}")
    return records


def _load_organizations(filepath: Path) -> list[Organization]:
    """Load organizations.csv file."""
    records = []
    df = _read_table(filepath)

    for _, row in df.iterrows():
        try:
            records.append(Organization(
                id=_clean(row.get("id")),
                name=_clean(row.get("name")),
                domain=_clean(row.get("domain")),
            ))
        except Exception as e:
            logger.warning(f"Skipping malformed organization row: {e}")

    logger.info(f"Loaded {len(records)} organizations from {filepath.name}")
    return records


def _find_file(directory: Path, name: str) -> Optional[Path]:
    """Find a file by name (case-insensitive)."""
    exact_path = directory / name
    if exact_path.exists():
        return exact_path

    for f in directory.iterdir():
        if f.name.lower() == name.lower():
            return f

    return None


def load_graph_export(directory: str | Path) -> GraphExport:
    """Load a graph export from a directory.

    Args:
        directory: Directory containing people.csv, edges.csv and optionally
            evidence.csv and organizations.csv

    Returns:
        GraphExport containing all loaded data

    Raises:
        FileNotFoundError: If the directory or a required file is missing
    """
    directory = Path(directory)

    if not directory.exists():
        raise FileNotFoundError(f"Directory not found: {directory}")

    export = GraphExport(source_directory=str(directory))

    for name, loader, attr in [
        ("people.csv", _load_people, "people"),
        ("edges.csv", _load_edges, "edges"),
    ]:
        filepath = _find_file(directory, name)
        if filepath is None:
            raise FileNotFoundError(f"{name} not found in {directory}")
        setattr(export, attr, loader(filepath))
        export.loaded_files.append(filepath.name)

    for name, loader, attr in [
        ("evidence.csv", _load_evidence, "evidence"),
        ("organizations.csv", _load_organizations, "organizations"),
    ]:
        filepath = _find_file(directory, name)
        if filepath is None:
            export.skipped_files.append(name)
            continue
        setattr(export, attr, loader(filepath))
        export.loaded_files.append(filepath.name)

    logger.info(
        f"Graph export loaded: {len(export.people)} people, "
        f"{len(export.edges)} edges, {len(export.evidence)} evidence events, "
        f"{len(export.loaded_files)} files loaded, "
        f"{len(export.skipped_files)} files skipped"
    )

    return export
