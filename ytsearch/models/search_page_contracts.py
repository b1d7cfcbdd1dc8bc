from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Fixed renderer path from the `contents` key of ytInitialData down to the
# list of result sections. Every level is required.


class SectionListRenderer(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    contents: list[Any]


class PrimaryContents(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    section_list_renderer: SectionListRenderer = Field(alias="sectionListRenderer")


class TwoColumnSearchResultsRenderer(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    primary_contents: PrimaryContents = Field(alias="primaryContents")


class SearchPageContents(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    two_column_search_results_renderer: TwoColumnSearchResultsRenderer = Field(
        alias="twoColumnSearchResultsRenderer"
    )

    @property
    def sections(self) -> list[Any]:
        return self.two_column_search_results_renderer.primary_contents.section_list_renderer.contents
