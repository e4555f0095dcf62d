"""
Output Generation

Generates JSON and Markdown path reports and CSV edge score exports.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from warmpath.models.entities import Edge, PathExplanation, PathfindingResult

logger = logging.getLogger(__name__)


def _quote(value: str) -> str:
    """Quote a CSV field, doubling any embedded quotes."""
    return '"' + value.replace('"', '""') + '"'


class OutputGenerator:
    """Generates various output formats from pathfinding and scoring results."""

    def __init__(
        self,
        output_dir: str | Path = "./outputs",
        formats: Optional[list[str]] = None,
        timestamp_filenames: bool = True,
    ):
        """Initialize output generator.

        Args:
            output_dir: Directory for output files
            formats: List of formats to generate (markdown, json)
            timestamp_filenames: Whether to include timestamp in filenames
        """
        self.output_dir = Path(output_dir)
        self.formats = formats or ["markdown", "json"]
        self.timestamp_filenames = timestamp_filenames

        # Create output directory
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _get_filename(self, base_name: str, extension: str) -> Path:
        """Generate output filename."""
        if self.timestamp_filenames:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"{base_name}_{timestamp}.{extension}"
        else:
            filename = f"{base_name}.{extension}"
        return self.output_dir / filename

    def _edges_to_csv(self, edges: list[Edge], names: dict[str, str]) -> str:
        """Convert edges to CSV format.

        Factor columns are the union of factor names across the edges, in
        first-seen order, so either scoring model's breakdown is kept.
        """
        factor_names = list(dict.fromkeys(
            name for edge in edges for name in edge.strength_factors
        ))
        lines = [",".join(["edge_id", "from", "to", "strength", *factor_names, "channels", "sources"])]

        for edge in edges:
            strength = "" if edge.strength is None else f"{edge.strength:.3f}"
            row = [
                _quote(edge.id),
                _quote(names.get(edge.from_person_id, edge.from_person_id)),
                _quote(names.get(edge.to_person_id, edge.to_person_id)),
                strength,
                *(str(edge.strength_factors.get(name, "")) for name in factor_names),
                _quote(";".join(edge.channels)),
                _quote(";".join(edge.sources)),
            ]
            lines.append(",".join(row))

        return "\n".join(lines)

    def _generate_paths_md(
        self,
        result: PathfindingResult,
        source_name: str,
        target_name: str,
        summary: dict,
        explanations: list[PathExplanation],
        names: dict[str, str],
    ) -> str:
        """Generate warm paths markdown report."""
        lines = [
            f"# Warm Paths: {source_name} → {target_name}\n",
            f"*Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}*\n",
            "## Summary\n",
            f"- **Paths found**: {summary['total_paths']}",
            f"- **Direct connections**: {summary['direct_paths']}",
            f"- **Average score**: {summary['avg_score']:.3f}",
            f"- **Nodes explored**: {result.search_metadata.nodes_explored}",
            f"- **Edges evaluated**: {result.search_metadata.edges_evaluated}",
            f"- **Search time**: {result.search_metadata.duration_ms:.1f} ms\n",
        ]

        if not result.paths:
            lines.append("No warm paths found within the search limits.\n")
            return "\n".join(lines)

        lines.append("## Ranked Paths\n")

        for path, explanation in zip(result.paths, explanations):
            route = " → ".join(names.get(node_id, node_id) for node_id in path.node_ids)
            factors = explanation.factors

            lines.extend([
                f"### {path.rank}. {route}\n",
                f"- **Score**: {path.score:.3f} ({path.hops} hop{'s' if path.hops != 1 else ''})",
                f"- **Summary**: {path.explanation}",
                f"- **Reasoning**: {explanation.reasoning}",
            ])

            if explanation.recommended_introducer:
                introducer = explanation.recommended_introducer
                lines.append(f"- **Ask**: {introducer.name} ({introducer.rationale})")

            lines.extend([
                f"- **Suggested channel**: {explanation.suggested_channel}",
                "",
                "| Factor | Value |",
                "|--------|-------|",
                f"| Introducer strength | {factors.introducer_relationship_strength:.2f} |",
                f"| Downstream strength | {factors.downstream_relationship_strength:.2f} |",
                f"| Recency | {factors.recency_score:.2f} |",
                f"| Evidence quality | {factors.evidence_quality:.2f} |",
                f"| Length penalty | {factors.path_length_penalty:.2f} |",
                "",
            ])

        return "\n".join(lines)

    def generate_paths_report(
        self,
        result: PathfindingResult,
        source_id: str,
        target_id: str,
        summary: dict,
        explanations: list[PathExplanation],
        names: dict[str, str],
    ) -> dict[str, Path]:
        """Generate warm paths reports.

        Args:
            result: Ranked pathfinding result
            source_id: Person the paths start at
            target_id: Person the paths end at
            summary: Summary from WarmPathFinder.get_summary
            explanations: Path explanations aligned with result.paths
            names: Display names keyed by person id

        Returns:
            Dictionary of format -> filepath
        """
        generated = {}
        source_name = names.get(source_id, source_id)
        target_name = names.get(target_id, target_id)

        # Sanitize ids for filename
        safe_target = "".join(c if c.isalnum() else "_" for c in target_id.lower())
        base_name = f"warm_paths_{safe_target}"

        if "markdown" in self.formats:
            md_content = self._generate_paths_md(
                result, source_name, target_name, summary, explanations, names
            )
            filepath = self._get_filename(base_name, "md")
            filepath.write_text(md_content)
            generated["markdown"] = filepath

        if "json" in self.formats:
            json_data = {
                "generated_at": datetime.now().isoformat(),
                "source_id": source_id,
                "target_id": target_id,
                "summary": summary,
                "paths": [
                    {
                        **path.model_dump(exclude={"edges"}),
                        "edge_ids": [edge.id for edge in path.edges],
                        "details": explanation.model_dump(exclude={"path"}),
                    }
                    for path, explanation in zip(result.paths, explanations)
                ],
            }
            filepath = self._get_filename(base_name, "json")
            filepath.write_text(json.dumps(json_data, indent=2, default=str))
            generated["json"] = filepath

        logger.info(f"Generated warm paths reports for {target_id}: {list(generated.keys())}")
        return generated

    def generate_edge_scores(
        self,
        edges: list[Edge],
        names: dict[str, str],
    ) -> Path:
        """Write a CSV of edge strengths and factor breakdowns."""
        filepath = self._get_filename("edge_scores", "csv")
        filepath.write_text(self._edges_to_csv(edges, names))
        logger.info(f"Wrote {len(edges)} edge scores to {filepath}")
        return filepath
