from fastapi import FastAPI, HTTPException, Depends, status, Request
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
import asyncio
import secrets

from mocksy.core.journal import RequestJournal
from mocksy.core.response import Response
from config import config

app = FastAPI(title="Mocksy")
security = HTTPBasic()

#авторизация
def get_current_username(credentials: HTTPBasicCredentials = Depends(security)):
    correct_username = secrets.compare_digest(credentials.username, config.ADMIN_USERNAME)
    correct_password = secrets.compare_digest(credentials.password, config.ADMIN_PASSWORD)

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username


def get_loader():
    loader = getattr(app.state, 'loader', None)
    if loader is None:
        raise HTTPException(status_code=503, detail="Response loader is not available")
    return loader


def get_response(response_id: str) -> Response:
    response = get_loader().get(response_id)
    if response is None:
        raise HTTPException(status_code=404, detail=f"Response '{response_id}' not found")
    return response


def describe(response: Response) -> dict:
    return {
        "id": response.id,
        "content_type": response.content_type,
        "delay": response.delay,
        "filters": [f.name for f in response.filters],
    }


async def read_field(request: Request, name: str):
    try:
        data = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Body must be JSON")
    if not isinstance(data, dict) or data.get(name) is None:
        raise HTTPException(status_code=400, detail=f"Field '{name}' is required")
    return data[name]


@app.get("/api/responses")
async def list_responses(username: str = Depends(get_current_username)):
    loader = get_loader()
    return JSONResponse(content=[describe(loader.get(rid)) for rid in loader.ids()])

@app.post("/api/responses/reload")
async def reload_responses(username: str = Depends(get_current_username)):
    loader = get_loader()
    try:
        loader.reload()
    except OSError as e:
        return JSONResponse(status_code=500, content={"error": str(e)})
    return JSONResponse(content={"status": "ok", "count": len(loader)})

@app.get("/api/responses/{response_id:path}")
async def get_response_details(response_id: str, username: str = Depends(get_current_username)):
    response = get_response(response_id)
    result = describe(response)
    # render_as_text не бросает, ошибки фильтров уходят в текст
    result["content"] = await asyncio.to_thread(response.render_as_text, False)
    result["filtered"] = await asyncio.to_thread(response.render_as_text, True)

    journal = getattr(app.state, 'journal', None)
    if journal is not None:
        result["hits"] = await journal.hits(response.id)
    return JSONResponse(content=result)

@app.post("/api/responses/{response_id:path}/delay")
async def set_delay(response_id: str, request: Request, username: str = Depends(get_current_username)):
    response = get_response(response_id)
    delay = await read_field(request, "delay")
    try:
        response.delay = int(delay)
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return JSONResponse(content=describe(response))

@app.post("/api/responses/{response_id:path}/content_type")
async def set_content_type(response_id: str, request: Request, username: str = Depends(get_current_username)):
    response = get_response(response_id)
    content_type = await read_field(request, "content_type")
    if not isinstance(content_type, str) or not content_type:
        raise HTTPException(status_code=400, detail="content_type must be a non-empty string")
    response.content_type = content_type
    return JSONResponse(content=describe(response))

@app.get("/api/requests")
async def get_requests(limit: int = 50, username: str = Depends(get_current_username)):
    journal = getattr(app.state, 'journal', None) or RequestJournal()
    try:
        entries = await journal.recent(limit)
    except Exception as e:
        return JSONResponse(status_code=500, content={"error": str(e)})
    return JSONResponse(content=entries)
