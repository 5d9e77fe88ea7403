"""Login page and the HTML shells behind the access gate."""

import html

from aiohttp import web

from ..core.constants import SERVER_NAME
from .helpers import current_actor

routes = web.RouteTableDef()

# path -> page title
SHELL_PAGES = {
    "/dashboard": "Dashboard",
    "/properties": "Properties",
    "/clients": "Clients",
    "/showings": "Showings",
    "/admin": "Administration",
}

_LOGIN_PAGE = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{SERVER_NAME} - Login</title></head>
<body>
  <h1>{SERVER_NAME}</h1>
  <form id="login">
    <input name="username" placeholder="Username" autocomplete="username">
    <input name="password" type="password" placeholder="Password" autocomplete="current-password">
    <button type="submit">Sign in</button>
  </form>
  <p id="error"></p>
  <script>
    document.getElementById("login").addEventListener("submit", async (event) => {{
      event.preventDefault();
      const form = new FormData(event.target);
      const response = await fetch("/api/auth/login", {{
        method: "POST",
        headers: {{"Content-Type": "application/json"}},
        body: JSON.stringify({{username: form.get("username"), password: form.get("password")}}),
      }});
      if (response.ok) {{
        window.location = "/dashboard";
      }} else {{
        document.getElementById("error").textContent = (await response.json()).error;
      }}
    }});
  </script>
</body>
</html>
"""


def _render_shell(title: str, actor: str) -> str:
    links = " | ".join(
        f'<a href="{path}">{html.escape(name)}</a>' for path, name in SHELL_PAGES.items()
    )
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        f"<head><meta charset=\"utf-8\"><title>{SERVER_NAME} - {html.escape(title)}</title></head>\n"
        "<body>\n"
        f"  <nav>{links}</nav>\n"
        f"  <h1>{html.escape(title)}</h1>\n"
        f"  <p>Signed in as {html.escape(actor)}</p>\n"
        "  <div id=\"content\"></div>\n"
        "</body>\n"
        "</html>\n"
    )


@routes.get("/")
async def login_page(request: web.Request) -> web.Response:
    return web.Response(text=_LOGIN_PAGE, content_type="text/html")


async def shell_page(request: web.Request) -> web.Response:
    title = SHELL_PAGES[request.path]
    return web.Response(text=_render_shell(title, current_actor(request)), content_type="text/html")


for _path in SHELL_PAGES:
    routes.get(_path)(shell_page)
