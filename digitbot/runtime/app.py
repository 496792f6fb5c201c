from __future__ import annotations

import asyncio

from digitbot.config import Settings
from digitbot.dashboard import EventBroadcaster, run_dashboard
from digitbot.data import DerivTickFeed, WeightStore
from digitbot.infra import RuntimeEventLogger, get_logger
from digitbot.runtime.pipeline import PipelineManager
from digitbot.runtime.supervisor import LoopSupervisor


class App:
    """Top-level orchestrator: feed -> pipeline -> broadcaster/dashboard."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.log = get_logger("digitbot", settings.log_level)
        self.events = RuntimeEventLogger(settings.data_dir) if settings.events_enabled else None
        self.store = WeightStore(settings.data_dir)
        self.broadcaster = EventBroadcaster(self.log)
        self.pipeline = PipelineManager(
            settings.pipeline,
            symbols=settings.symbols,
            store=self.store,
            publish=self.broadcaster.publish,
            events=self.events,
            log=self.log,
        )
        self.feed = DerivTickFeed(
            url=settings.feed_url,
            symbols=settings.symbols,
            on_tick=self.pipeline.on_tick,
            api_token=settings.deriv_api_token,
            log=self.log,
            events=self.events,
        )

    async def run(self) -> None:
        self.log.info(
            "starting digitbot symbols=%s data_dir=%s dashboard=%s",
            ",".join(self.settings.symbols),
            self.settings.data_dir,
            self.settings.dashboard_enabled,
        )
        if self.events is not None:
            self.events.emit("engine.start", symbols=list(self.settings.symbols))

        supervisor = LoopSupervisor(base_delay=self.settings.feed_reconnect_sec)
        jobs = [supervisor.run_forever("tick-feed", self.feed.run, self.log)]
        if self.settings.dashboard_enabled:
            jobs.append(
                run_dashboard(
                    pipeline=self.pipeline,
                    broadcaster=self.broadcaster,
                    port=self.settings.dashboard_port,
                    log_level=self.settings.log_level,
                )
            )
        try:
            await asyncio.gather(*jobs)
        finally:
            self.pipeline.close()


def run_main(settings: Settings) -> None:
    try:
        asyncio.run(App(settings).run())
    except KeyboardInterrupt:
        pass
