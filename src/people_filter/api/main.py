import base64
import binascii
from collections.abc import Callable
from typing import Any

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from people_filter.config import PipelineOptions, Settings, get_settings
from people_filter.exceptions import ConfigurationError, PeopleFilterError
from people_filter.llm import ModelClient, OpenAIModelClient
from people_filter.pipeline import filter_candidates
from people_filter.storage import LocalStorage, parse_candidates, render_results

API_VERSION = "1.0"
PREVIEW_SIZE = 10

SERVER_INFO = {
    "name": "CSV People Filter MCP Server",
    "version": "1.0.0",
    "description": "An MCP server that filters people from CSV files by search description using AI-powered matching",
}

TOOLS: list[dict[str, Any]] = [
    {
        "name": "upload_csv",
        "description": "Upload a CSV file for processing",
        "parameters": {
            "type": "object",
            "properties": {
                "file_content": {"type": "string", "description": "Base64 encoded content of the CSV file"},
                "file_name": {"type": "string", "description": "Name of the CSV file"},
            },
            "required": ["file_content", "file_name"],
        },
        "returns": {
            "type": "object",
            "properties": {
                "file_key": {"type": "string", "description": "Storage key of the uploaded CSV file"},
                "row_count": {"type": "number", "description": "Number of rows in the CSV file"},
            },
        },
    },
    {
        "name": "filter_people",
        "description": "Filter people from a CSV file based on a search description",
        "parameters": {
            "type": "object",
            "properties": {
                "input_file_key": {"type": "string", "description": "Storage key of the input CSV file"},
                "search_description": {"type": "string", "description": "Description of the person(s) you are looking for"},
                "output_file_name": {
                    "type": "string",
                    "description": "Name for the output CSV file",
                    "default": "filtered_output.csv",
                },
                "strategy": {
                    "type": "string",
                    "enum": ["structured", "relevance", "flat"],
                    "description": "Title filtering strategy",
                },
                "exclude_terms": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Title terms to exclude, replacing the inferred ones",
                },
            },
            "required": ["input_file_key", "search_description"],
        },
        "returns": {
            "type": "object",
            "properties": {
                "matchCount": {"type": "number", "description": "Number of matching people found"},
                "outputFileKey": {"type": "string", "description": "Storage key of the output CSV file"},
                "results": {"type": "array", "description": f"Preview of the first {PREVIEW_SIZE} results"},
            },
        },
    },
    {
        "name": "get_server_info",
        "description": "Get information about this MCP server",
        "parameters": {"type": "object", "properties": {}},
        "returns": {
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Name of the MCP server"},
                "version": {"type": "string", "description": "Version of the MCP server"},
                "description": {"type": "string", "description": "Description of the MCP server"},
            },
        },
    },
]

app = FastAPI(title=SERVER_INFO["name"], version=SERVER_INFO["version"])
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


class ToolRequest(BaseModel):
    tool: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    requestId: Any = None


# ── Dependencies ─────────────────────────────────────────────────────────────

def get_storage(settings: Settings = Depends(get_settings)) -> LocalStorage:
    return LocalStorage(settings.data_dir)


def get_client_factory(settings: Settings = Depends(get_settings)) -> Callable[[], ModelClient]:
    # built lazily so tools that need no model work without an API key
    return lambda: OpenAIModelClient(settings.llm_config(), profile_log=settings.logs_dir / "api_profile.jsonl")


# ── Tools ────────────────────────────────────────────────────────────────────

def _upload_csv(storage: LocalStorage, parameters: dict[str, Any]) -> dict[str, Any]:
    file_content = parameters.get("file_content")
    file_name = parameters.get("file_name")
    if not file_content or not file_name:
        raise ConfigurationError("Missing required parameters: file_content and file_name are required")

    try:
        # MIME-wrapped payloads carry line breaks
        data = base64.b64decode("".join(file_content.split()), validate=True)
        rows = parse_candidates(data.decode("utf-8-sig"))
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ConfigurationError(f"file_content is not a base64 encoded UTF-8 CSV: {e}") from e

    file_key = storage.upload(data, file_name)
    logger.info(f"Uploaded {file_name} as {file_key} ({len(rows)} rows)")
    return {"file_key": file_key, "row_count": len(rows)}


async def _filter_people(
    storage: LocalStorage,
    settings: Settings,
    client_factory: Callable[[], ModelClient],
    parameters: dict[str, Any],
) -> dict[str, Any]:
    input_file_key = parameters.get("input_file_key")
    search_description = parameters.get("search_description")
    output_file_name = parameters.get("output_file_name") or "filtered_output.csv"
    if not input_file_key or not search_description:
        raise ConfigurationError("Missing required parameters: input_file_key and search_description are required")

    overrides = {k: parameters[k] for k in ("strategy", "exclude_terms") if parameters.get(k) is not None}
    try:
        options = PipelineOptions.model_validate(settings.load_config().pipeline.model_dump() | overrides)
    except ValueError as e:
        raise ConfigurationError(f"Invalid filter options: {e}") from e

    try:
        candidates = parse_candidates(storage.download(input_file_key).decode("utf-8-sig"))
    except UnicodeDecodeError as e:
        raise ConfigurationError(f"Stored file {input_file_key} is not a UTF-8 CSV: {e}") from e
    results = await filter_candidates(candidates, search_description, options, client=client_factory())

    records = [r.to_record() for r in results]
    output_file_key = storage.upload(render_results(records).encode("utf-8"), output_file_name)
    logger.info(f"Search complete. Found {len(records)} matches. Results saved to {output_file_key}")

    return {
        "matchCount": len(records),
        "outputFileKey": output_file_key,
        "results": records[:PREVIEW_SIZE],
    }


# ── Endpoint ─────────────────────────────────────────────────────────────────

@app.post("/mcp")
async def mcp(
    request: ToolRequest,
    settings: Settings = Depends(get_settings),
    storage: LocalStorage = Depends(get_storage),
    client_factory: Callable[[], ModelClient] = Depends(get_client_factory),
):
    response: dict[str, Any] = {"apiVersion": API_VERSION, "requestId": request.requestId}
    try:
        match request.tool:
            case "discover_tools":
                response["tools"] = TOOLS
            case "upload_csv":
                response["result"] = _upload_csv(storage, request.parameters)
            case "filter_people":
                response["result"] = await _filter_people(storage, settings, client_factory, request.parameters)
            case "get_server_info":
                response["result"] = SERVER_INFO
            case _:
                raise ConfigurationError(f"Unknown tool: {request.tool}")
    except ConfigurationError as e:
        logger.warning(f"Rejected {request.tool} request: {e}")
        return JSONResponse(status_code=400, content={"error": str(e)})
    except PeopleFilterError as e:
        logger.error(f"Error handling {request.tool} request: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
    return response


# ── Entry point ───────────────────────────────────────────────────────────────

def serve(host: str = "127.0.0.1", port: int = 3000):
    uvicorn.run("people_filter.api.main:app", host=host, port=port)
