"""Informational landing page."""

import html

from fastapi import Request
from fastapi.responses import HTMLResponse

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>OpenAI API Adapter</title>
  <style>
    body {{ font-family: -apple-system, 'Segoe UI', sans-serif; max-width: 760px; margin: 40px auto; color: #2d3748; }}
    code, pre {{ background: #f7fafc; padding: 2px 6px; border-radius: 4px; }}
    pre {{ padding: 16px; overflow-x: auto; }}
    li {{ margin-bottom: 6px; }}
  </style>
</head>
<body>
  <h1>OpenAI API Adapter</h1>
  <p>OpenAI-compatible endpoints for DeepSeek models.</p>
  <h2>Endpoints</h2>
  <ul>
    <li><code>GET /v1/models</code> - list available models</li>
    <li><code>POST /v1/chat/completions</code> - chat completions (streaming and non-streaming)</li>
  </ul>
  <h2>Models</h2>
  <ul>
{models}
  </ul>
  <h2>Example</h2>
  <pre>curl {base_url}v1/chat/completions \\
  -H "Content-Type: application/json" \\
  -H "Authorization: Bearer YOUR_API_KEY" \\
  -d '{{"model": "deepseek-chat", "messages": [{{"role": "user", "content": "Hello"}}]}}'</pre>
  <p>{auth_note}</p>
</body>
</html>
"""


async def home_page(request: Request) -> HTMLResponse:
    """Describe the adapter's endpoints and models.

    GET /
    """
    state = request.app.state
    registry = state.registry
    model_items = "\n".join(
        f"    <li><code>{html.escape(model_id)}</code> &rarr; {html.escape(registry.get(model_id) or model_id)}</li>"
        for model_id in registry.advertised
    )
    if state.settings.auth_enabled:
        auth_note = "Requests to <code>/v1/*</code> require <code>Authorization: Bearer YOUR_API_KEY</code>."
    else:
        auth_note = "Authentication is disabled: no API keys are configured."
    page = _PAGE_TEMPLATE.format(
        models=model_items,
        base_url=html.escape(str(request.base_url)),
        auth_note=auth_note,
    )
    return HTMLResponse(page)
