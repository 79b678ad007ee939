"""Static HTML served by the import server.

Every page is an immutable ``bytes`` constant built once at import time.
"""

from __future__ import annotations

IMPORT_FORM_PAGE: bytes = b"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>Token Import</title>
    <style>
        body { font-family: system-ui, -apple-system, sans-serif; max-width: 800px; margin: 50px auto; padding: 20px; }
        h1 { color: #333; }
        textarea { width: 100%; height: 300px; font-family: monospace; font-size: 12px; padding: 10px; border: 1px solid #ccc; border-radius: 4px; }
        button { background: #0066cc; color: white; padding: 12px 24px; border: none; border-radius: 4px; font-size: 16px; cursor: pointer; margin-top: 10px; }
        button:hover { background: #0055aa; }
        .hint { color: #666; font-size: 14px; margin-top: 10px; }
    </style>
</head>
<body>
    <h1>Token Import</h1>
    <p>Paste your token JSON below:</p>
    <textarea id="json" placeholder='{
  "email": "user@example.com",
  "provider": "BuilderId",
  "accessToken": "aoaAAAAA...",
  "refreshToken": "aorAAAAA...",
  "clientId": "...",
  "clientSecret": "...",
  "region": "us-east-1"
}'></textarea>
    <br>
    <button onclick="submitToken()">Submit</button>
    <p class="hint">After clicking Submit, you can close this window.</p>
    <script>
        function submitToken() {
            const json = document.getElementById('json').value;
            if (!json.trim()) { alert('Please paste JSON first'); return; }
            fetch('/submit', { method: 'POST', body: json })
                .then(r => r.text())
                .then(html => { document.body.innerHTML = html; })
                .catch(e => alert('Error: ' + e));
        }
    </script>
</body>
</html>
"""


def _message_page(message: str) -> bytes:
    return (
        '<html><body style="font-family:system-ui;text-align:center;padding:50px;">'
        f"<h2>{message}</h2></body></html>"
    ).encode("utf-8")


ACK_PAGE: bytes = _message_page("JSON received! You can close this window.")

ALREADY_RECEIVED_PAGE: bytes = _message_page(
    "JSON was already received. You can close this window."
)

NOT_FOUND_PAGE: bytes = _message_page("Not found.")

METHOD_NOT_ALLOWED_PAGE: bytes = _message_page("Method not allowed.")

BAD_REQUEST_PAGE: bytes = _message_page("Failed to read the request body.")

LENGTH_REQUIRED_PAGE: bytes = _message_page("A Content-Length header is required.")

TOO_LARGE_PAGE: bytes = _message_page("The pasted JSON is too large.")
