#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
from typing import Any, Literal, Protocol, runtime_checkable

import polars as pl
from rapidfuzz import fuzz, process, utils


class NotGiven:
    """
    A sentinel singleton class used to distinguish omitted keyword arguments
    from those passed in with the value None (which may have different behavior).

    For example:

    ```py
    find(room_id=NOT_GIVEN, requester_id="u1")  # filter on requester only
    find(room_id=None)  # rows whose room_id is null
    ```
    """

    def __bool__(self) -> Literal[False]:
        return False

    def __repr__(self) -> str:
        return "NOT_GIVEN"


NOT_GIVEN = NotGiven()


@runtime_checkable
class DataframeFilterMethodType(Protocol):
    """Callable type def for Dataframe filtering functions."""

    def __call__(
        self,
        dataframe: pl.DataFrame,
        column_name: str,
        value: Any,
        **kwargs: int | Any,
    ) -> pl.DataFrame: ...


def exact_match_filter_dataframe(
    dataframe: pl.DataFrame, column_name: str, value: Any, **kwargs: int | Any
) -> pl.DataFrame:
    """Filter dataframe by exact matching value on 1 column

    Parameters
    ----------
        dataframe:      Dataframe to filter
        column_name:    Name of column
        value:          Value to match against

    Returns
    -------
        Filtered dataframe

    """
    if value is None:
        return dataframe.filter(pl.col(column_name).is_null())
    return dataframe.filter(pl.col(column_name) == value)


def case_insensitive_match_filter_dataframe(
    dataframe: pl.DataFrame, column_name: str, value: Any, **kwargs: int | Any
) -> pl.DataFrame:
    """Filter dataframe for rows whose string column equals value, ignoring case
    and surrounding whitespace. The value is compared literally, never as a pattern.
    """
    return dataframe.filter(
        pl.col(column_name).str.strip_chars().str.to_lowercase()
        == str(value).strip().lower()
    )


def lt_filter_dataframe(
    dataframe: pl.DataFrame, column_name: str, value: Any, **kwargs: int | Any
) -> pl.DataFrame:
    """Filter dataframe for rows whose column_name are strictly less than value."""
    return dataframe.filter(pl.col(column_name) < value)


def gt_eq_filter_dataframe(
    dataframe: pl.DataFrame, column_name: str, value: Any, **kwargs: int | Any
) -> pl.DataFrame:
    """Filter dataframe for rows whose column_name are greater than or equal to value.
    The value must implement __gt__.

    Parameters
    ----------
        dataframe:      Dataframe to filter
        column_name:    Name of column
        value:          Lowerbound of column value

    Returns
    -------
        Filtered dataframe

    """
    return dataframe.filter(pl.col(column_name) >= value)


def fuzzy_match_filter_dataframe(
    dataframe: pl.DataFrame, column_name: str, value: Any, **kwargs: int | Any
) -> pl.DataFrame:
    """Filter dataframe by fuzzy matching string value on 1 column. Backed by fuzz.WRatio

    Parameters
    ----------
        dataframe:      Dataframe to filter
        column_name:    Name of column
        value:          Value to match against
        **kwargs:       Additional kwargs for matching, for example
                        threshold for fuzz.WRatio, only entries above the threshold are selected
                        and limit, the maximum number of rows returned.

    Returns
    -------
        Filtered dataframe, best matches first
    """
    threshold = kwargs.get("threshold", 90)
    limit = kwargs.get("limit", 50)
    if dataframe.is_empty():
        return dataframe
    # process.extract returns a tuple of (string, score, index)
    matches = process.extract(
        query=value,
        choices=dataframe.get_column(column_name).to_list(),
        processor=utils.default_process,
        scorer=fuzz.WRatio,
        score_cutoff=threshold,
        limit=limit,
    )
    return dataframe[[x[-1] for x in matches]]


def filter_dataframe(
    dataframe: pl.DataFrame,
    filter_criteria: list[tuple[str, Any, DataframeFilterMethodType]],
) -> pl.DataFrame:
    """Filter dataframe given a filter method, column name and target value.
    Criteria whose value is `NOT_GIVEN` are skipped, so an empty (or all
    `NOT_GIVEN`) list of criteria returns the dataframe unchanged.

    Parameters
    ----------
    dataframe
        Dataframe to filter
    filter_criteria
        A list of filter constraints on each column,
        each tuple contains [column_name, value, filter_method]

    Returns
    -------
        Filtered dataframe
    """
    for column_name, filter_value, filter_method in filter_criteria:
        if filter_value is not NOT_GIVEN:
            dataframe = filter_method(
                dataframe=dataframe,
                column_name=column_name,
                value=filter_value,
            )
    return dataframe
