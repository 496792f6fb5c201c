from __future__ import annotations

import asyncio

from aiohttp import WSMsgType, web

from digitbot.config import SYMBOL_NAMES
from digitbot.dashboard.broadcaster import EventBroadcaster
from digitbot.infra.log import get_logger


HTML = """<!doctype html><html><head><meta charset='utf-8'><title>DigitBot</title></head>
<body style='font-family:system-ui;background:#060b16;color:#dbe4ff;padding:16px'>
<h2>DigitBot</h2>
<pre id='state'>loading...</pre>
<h3>Events</h3>
<pre id='events'></pre>
<script>
const lines=[];
async function poll(){
  try{
    const r=await fetch('/api',{cache:'no-store'});
    document.getElementById('state').textContent=JSON.stringify(await r.json(),null,2);
  }catch(e){document.getElementById('state').textContent='dashboard error: '+e;}
}
function connect(){
  const ws=new WebSocket((location.protocol==='https:'?'wss://':'ws://')+location.host+'/ws');
  ws.onmessage=(m)=>{
    const ev=JSON.parse(m.data);
    if(ev.type==='tick')return;
    lines.unshift(JSON.stringify(ev));lines.length=Math.min(lines.length,50);
    document.getElementById('events').textContent=lines.join('\\n');
  };
  ws.onclose=()=>setTimeout(connect,2000);
}
setInterval(poll,2000);poll();connect();
</script>
</body></html>"""


def build_app(pipeline, broadcaster: EventBroadcaster) -> web.Application:
    async def handle_html(_req: web.Request) -> web.Response:
        return web.Response(text=HTML, content_type="text/html")

    async def handle_api(_req: web.Request) -> web.Response:
        payload = pipeline.snapshot()
        for row in payload.get("instruments", []):
            row["name"] = SYMBOL_NAMES.get(row["symbol"], row["symbol"])
        return web.json_response(payload, headers={"Cache-Control": "no-store"})

    async def handle_ws(req: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse(heartbeat=30.0)
        await ws.prepare(req)
        broadcaster.add(ws)
        try:
            async for msg in ws:
                if msg.type == WSMsgType.ERROR:
                    break
        finally:
            broadcaster.discard(ws)
        return ws

    app = web.Application()
    app.router.add_get("/", handle_html)
    app.router.add_get("/api", handle_api)
    app.router.add_get("/ws", handle_ws)
    return app


async def run_dashboard(
    *,
    pipeline,
    broadcaster: EventBroadcaster,
    port: int,
    log_level: str = "INFO",
) -> None:
    log = get_logger("digitbot-dashboard", log_level)
    runner = web.AppRunner(build_app(pipeline, broadcaster))
    await runner.setup()
    site = web.TCPSite(runner, "0.0.0.0", port)
    await site.start()
    log.info("dashboard running on :%s", port)

    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        await broadcaster.close()
        await runner.cleanup()
