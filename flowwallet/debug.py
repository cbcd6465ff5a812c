"""Plain-text build and request information for debugging."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class DebugInfo:
    """Build information of the running service."""

    repo_url: str
    sha1ver: str
    build_time: str

    def render(
        self,
        method: str,
        request_uri: str,
        headers: Mapping[str, str | Sequence[str]],
        api_version: str = "",
    ) -> str:
        """Describe a request and the build as plain text."""
        lines = [f"url: {method} {request_uri}", "Headers:"]
        for name, values in headers.items():
            if isinstance(values, str):
                values = [values]
            if not values:
                lines.append(name)
            elif len(values) == 1:
                lines.append(f"  {name}: {values[0]}")
            else:
                lines.append(f"  {name}:")
                lines.extend(f"    {value}" for value in values)
        lines.append("")
        lines.append(f"ver: {self.repo_url}/commit/{self.sha1ver}")
        lines.append(f"built on: {self.build_time}")
        lines.append(f"api version called: {api_version}")
        return "\n".join(lines)