"""
Scraper Node - Extract records from HTML with CSS selectors.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from bs4 import BeautifulSoup, Tag
from pydantic import BaseModel, Field
from soupsieve import SelectorSyntaxError

from knotwork.node_sdk.basenode import BaseNode, NodeConfig, NodeExecutionContext
from knotwork.node_sdk.values import stringify
from knotwork.workflow_runtime.models import ExecutionResult


logger = logging.getLogger(__name__)


class ScrapeRule(BaseModel):
    """One extracted field: `key` <- `attribute` of the first `selector` match."""
    selector: str = ""
    attribute: str = "text"
    key: str = ""


class ScraperConfig(NodeConfig):
    container_selector: str = Field("", alias="containerSelector")
    rules: List[ScrapeRule] = Field(default_factory=list)


def _select(root: Union[BeautifulSoup, Tag], selector: str) -> List[Tag]:
    """CSS select; an invalid selector matches nothing."""
    try:
        return root.select(selector)
    except SelectorSyntaxError:
        logger.debug(f"Invalid CSS selector {selector!r}, treating as no match")
        return []


def _read_attribute(element: Tag, attribute: str) -> Optional[str]:
    if attribute == "text":
        return element.get_text().strip()

    value = element.get(attribute)
    if isinstance(value, list):
        # multi-valued attributes such as class
        return " ".join(value)
    return value


class ScraperNode(BaseNode):
    """
    Scraper Node - Parse the primary input as HTML.

    With a container selector, every container match yields one record;
    otherwise the whole document yields a single record. Each rule reads
    the first match of its selector inside the container ("text" is the
    trimmed text content, any other attribute its raw value). A rule with
    no selector reads the container itself.
    """

    type = "scraper"
    config_model = ScraperConfig

    description = {
        "displayName": "Scraper",
        "group": ["transform"],
        "description": "Extracts records from HTML using CSS selectors",
    }

    def execute(self, context: NodeExecutionContext) -> ExecutionResult:
        config: ScraperConfig = self.get_config(context)
        value = context.get_primary_input()
        html = "" if value is None else stringify(value)

        if not html.strip():
            return self.success(context, {"items": []})

        soup = BeautifulSoup(html, "html.parser")

        if config.container_selector:
            containers: List[Union[BeautifulSoup, Tag]] = list(
                _select(soup, config.container_selector)
            )
        else:
            containers = [soup]

        items = [self._extract_record(container, config.rules) for container in containers]
        self.logger.debug(f"Scraped {len(items)} records")

        return self.success(context, {"items": items, "data": items})

    @staticmethod
    def _extract_record(
        container: Union[BeautifulSoup, Tag],
        rules: List[ScrapeRule],
    ) -> Dict[str, Any]:
        record: Dict[str, Any] = {}
        for rule in rules:
            if not rule.key:
                continue

            if rule.selector:
                matches = _select(container, rule.selector)
                element = matches[0] if matches else None
            else:
                element = container

            record[rule.key] = _read_attribute(element, rule.attribute) if element is not None else None
        return record


__all__ = [
    "ScraperNode",
    "ScrapeRule",
]
