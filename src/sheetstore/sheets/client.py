"""
Google Sheets API client wrapper.

This module provides a high-level interface to the Google Sheets API via gspread,
with error wrapping for the range reads/writes, sheet lifecycle calls and
Visualization queries the stores are built on.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import gspread
from gspread.exceptions import APIError

from sheetstore.exceptions import SheetsAPIError
from sheetstore.sheets.models import (
    APPEND_MODE_INSERT,
    APPEND_MODE_OVERWRITE,
    MAJOR_DIMENSION_ROWS,
    QUERY_RESPONSE_HANDLER,
    QUERY_ROWS_URL_TEMPLATE,
    RESPONSE_VALUE_RENDER_FORMATTED,
    VALUE_INPUT_USER_ENTERED,
    BatchUpdateRowsRequest,
    InsertRowsResult,
    QueryRowsResult,
    UpdateRowsResult,
    parse_query_response,
)
from sheetstore.spreadsheet.model import A1Range

logger = logging.getLogger(__name__)


class SheetsClient:
    """
    A wrapper around gspread for Google Sheets API operations.

    This client wraps an authenticated gspread client, adding error handling
    and the operations needed by the row and key-value stores. Every method
    issues exactly one request (plus a one-off metadata fetch the first time a
    spreadsheet is opened) and never retries.

    Attributes:
        gc: The authenticated gspread client instance
    """

    def __init__(self, gc: gspread.Client, timeout: Optional[float] = None) -> None:
        """
        Initialize the Sheets client with an authenticated gspread client.

        Args:
            gc: An authenticated gspread client, e.g. from ``gspread.service_account()``
                or ``gspread.oauth()``.
            timeout: Optional per-request timeout in seconds applied to every
                HTTP call made through ``gc``.
        """
        self.gc = gc
        self._spreadsheets: Dict[str, gspread.Spreadsheet] = {}
        if timeout is not None:
            self.gc.set_timeout(timeout)

    def _open(self, spreadsheet_id: str) -> gspread.Spreadsheet:
        spreadsheet = self._spreadsheets.get(spreadsheet_id)
        if spreadsheet is not None:
            return spreadsheet

        try:
            spreadsheet = self.gc.open_by_key(spreadsheet_id)
        except APIError as e:
            raise SheetsAPIError(f"Failed to open spreadsheet '{spreadsheet_id}': {e}") from e

        self._spreadsheets[spreadsheet_id] = spreadsheet
        return spreadsheet

    def get_sheet_name_to_id(self, spreadsheet_id: str) -> Dict[str, int]:
        """
        List the sheets (tabs) of a spreadsheet.

        Returns:
            Mapping of sheet title to sheet ID

        Raises:
            SheetsAPIError: If the API call fails or a sheet has no properties
        """
        try:
            metadata = self._open(spreadsheet_id).fetch_sheet_metadata()
        except APIError as e:
            raise SheetsAPIError(f"Failed to fetch sheets of spreadsheet: {e}") from e

        result: Dict[str, int] = {}
        for sheet in metadata.get("sheets", []):
            properties = sheet.get("properties")
            if not properties:
                raise SheetsAPIError("Failed to list sheets due to empty sheet properties")
            result[properties["title"]] = properties["sheetId"]
        return result

    def create_sheet(self, spreadsheet_id: str, sheet_name: str) -> None:
        """
        Add a sheet (tab) unless one with the same title already exists.

        Raises:
            SheetsAPIError: If the API call fails
        """
        if sheet_name in self.get_sheet_name_to_id(spreadsheet_id):
            return

        body = {"requests": [{"addSheet": {"properties": {"title": sheet_name}}}]}
        try:
            self._open(spreadsheet_id).batch_update(body)
        except APIError as e:
            raise SheetsAPIError(f"Failed to add sheet '{sheet_name}' to spreadsheet: {e}") from e
        logger.info("Created sheet %r in spreadsheet %s", sheet_name, spreadsheet_id)

    def delete_sheets(self, spreadsheet_id: str, sheet_ids: Sequence[int]) -> None:
        """
        Delete sheets by ID in a single batch request.

        Raises:
            SheetsAPIError: If the API call fails
        """
        if not sheet_ids:
            return

        body = {"requests": [{"deleteSheet": {"sheetId": sheet_id}} for sheet_id in sheet_ids]}
        try:
            self._open(spreadsheet_id).batch_update(body)
        except APIError as e:
            raise SheetsAPIError(f"Failed to delete {len(sheet_ids)} sheet(s): {e}") from e

    def insert_rows(
        self,
        spreadsheet_id: str,
        a1_range: A1Range,
        values: List[List[Any]]
    ) -> InsertRowsResult:
        """
        Append rows after the table in ``a1_range``, shifting existing cells down.

        Raises:
            SheetsAPIError: If the API call fails
        """
        return self._append_rows(spreadsheet_id, a1_range, values, APPEND_MODE_INSERT)

    def overwrite_rows(
        self,
        spreadsheet_id: str,
        a1_range: A1Range,
        values: List[List[Any]]
    ) -> InsertRowsResult:
        """
        Append rows after the table in ``a1_range``, writing into the empty rows below it.

        Raises:
            SheetsAPIError: If the API call fails
        """
        return self._append_rows(spreadsheet_id, a1_range, values, APPEND_MODE_OVERWRITE)

    def _append_rows(
        self,
        spreadsheet_id: str,
        a1_range: A1Range,
        values: List[List[Any]],
        mode: str
    ) -> InsertRowsResult:
        params = {
            "valueInputOption": VALUE_INPUT_USER_ENTERED,
            "insertDataOption": mode,
            "includeValuesInResponse": True,
            "responseValueRenderOption": RESPONSE_VALUE_RENDER_FORMATTED,
        }
        body = {
            "majorDimension": MAJOR_DIMENSION_ROWS,
            "range": a1_range.original,
            "values": values,
        }
        logger.debug("Appending %d row(s) to %s (%s)", len(values), a1_range, mode)

        try:
            response = self._open(spreadsheet_id).values_append(a1_range.original, params, body)
        except APIError as e:
            raise SheetsAPIError(
                f"Failed to append rows to range '{a1_range}': {e}"
            ) from e
        return InsertRowsResult.from_response(response)

    def update_rows(
        self,
        spreadsheet_id: str,
        a1_range: A1Range,
        values: List[List[Any]]
    ) -> UpdateRowsResult:
        """
        Write values into a range and read back what the backend computed.

        Formulas are evaluated as part of the write, so the returned
        ``updated_values`` hold their results.

        Raises:
            SheetsAPIError: If the API call fails
        """
        params = {
            "valueInputOption": VALUE_INPUT_USER_ENTERED,
            "includeValuesInResponse": True,
            "responseValueRenderOption": RESPONSE_VALUE_RENDER_FORMATTED,
        }
        body = {
            "majorDimension": MAJOR_DIMENSION_ROWS,
            "range": a1_range.original,
            "values": values,
        }
        logger.debug("Updating range %s", a1_range)

        try:
            response = self._open(spreadsheet_id).values_update(
                a1_range.original, params=params, body=body
            )
        except APIError as e:
            raise SheetsAPIError(
                f"Failed to update values in range '{a1_range}': {e}"
            ) from e
        return UpdateRowsResult.from_response(response)

    def batch_update_rows(
        self,
        spreadsheet_id: str,
        requests: Sequence[BatchUpdateRowsRequest]
    ) -> List[UpdateRowsResult]:
        """
        Write several ranges in a single request.

        Raises:
            SheetsAPIError: If the API call fails
        """
        if not requests:
            return []

        body = {
            "data": [request.to_dict() for request in requests],
            "includeValuesInResponse": True,
            "responseValueRenderOption": RESPONSE_VALUE_RENDER_FORMATTED,
            "valueInputOption": VALUE_INPUT_USER_ENTERED,
        }
        logger.debug("Batch updating %d range(s)", len(requests))

        try:
            response = self._open(spreadsheet_id).values_batch_update(body)
        except APIError as e:
            raise SheetsAPIError(
                f"Failed to batch update {len(requests)} value ranges: {e}"
            ) from e
        return [UpdateRowsResult.from_response(r) for r in response.get("responses", [])]

    def query_rows(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        query: str,
        skip_header: bool
    ) -> QueryRowsResult:
        """
        Run a Visualization query against one sheet.

        Args:
            spreadsheet_id: The spreadsheet to query
            sheet_name: The sheet the query reads from
            query: The query string (e.g. ``select A, B where A is not null``)
            skip_header: Whether the first row is a header row

        Raises:
            SheetsAPIError: If the request fails or the response is malformed
        """
        params = {
            "sheet": sheet_name,
            "tqx": QUERY_RESPONSE_HANDLER,
            "tq": query,
            "headers": 1 if skip_header else 0,
        }
        url = QUERY_ROWS_URL_TEMPLATE.format(spreadsheet_id)
        logger.debug("Querying sheet %r: %s", sheet_name, query)

        try:
            response = self.gc.http_client.request("get", url, params=params)
        except APIError as e:
            raise SheetsAPIError(f"Failed to query sheet '{sheet_name}': {e}") from e
        return parse_query_response(response.text)

    def clear(self, spreadsheet_id: str, ranges: Sequence[A1Range]) -> List[str]:
        """
        Clear the values of several ranges in a single request.

        Returns:
            The ranges the backend reports as cleared

        Raises:
            SheetsAPIError: If the API call fails
        """
        if not ranges:
            return []

        body = {"ranges": [r.original for r in ranges]}
        logger.debug("Clearing %d range(s)", len(ranges))

        try:
            response = self._open(spreadsheet_id).values_batch_clear(body=body)
        except APIError as e:
            raise SheetsAPIError(f"Failed to clear {len(ranges)} range(s): {e}") from e
        return response.get("clearedRanges", [])
