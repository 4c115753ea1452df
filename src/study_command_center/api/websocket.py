"""WebSocket handler hosting the live views of one browser tab."""

import asyncio
from typing import Any

import structlog
from fastapi import WebSocket, WebSocketDisconnect

from study_command_center.analysis.coach import Coach
from study_command_center.api.deps import build_generator, get_store
from study_command_center.config import Settings
from study_command_center.exam.engine import TestSession, save_result
from study_command_center.exam.generator import generate_material_test
from study_command_center.focus.session import CompletionReport, DisciplinePolicy, FocusSessionController
from study_command_center.focus.tasks import CustomTaskInput, is_custom_mode, resolve_task
from study_command_center.focus.timer import InvalidTransition, TimerState
from study_command_center.generation.client import GenerationClient
from study_command_center.generation.extractor import GenerationFailed
from study_command_center.library.materials import get_material
from study_command_center.models.exam import ActiveTest, TestResult
from study_command_center.models.schedule import date_key
from study_command_center.models.session import ActiveVideo
from study_command_center.planning.schedule import SCHEDULE_COLLECTION, ScheduleService, get_schedule
from study_command_center.shell.router import NavigationContext, View, ViewRouter
from study_command_center.storage.documents import DocumentStore, validate_segment
from study_command_center.storage.profiles import PROFILE_COLLECTION, PROFILE_DOC, adjust_discipline, load_profile
from study_command_center.vocab.builder import VocabularyBuilder

logger = structlog.get_logger()

FOCUS_SAVE_FAILED = "Could not save this focus session. Back to the dashboard."


class ClientSession:
    """State for one connected user: current view, live state machines and
    store subscriptions.

    Outgoing frames are queued and written by a single forwarder task, so
    synchronous callbacks (store listeners, timer events) can emit safely.

    Args:
        settings: Application settings.
        browser_ws: Connected browser socket.
        user_id: Owner of every document touched.
        store: Document store (defaults to the shared one).
        generator: Generation client (defaults to one built from settings).
    """

    def __init__(
        self,
        settings: Settings,
        browser_ws: WebSocket,
        user_id: str,
        store: DocumentStore | None = None,
        generator: GenerationClient | None = None,
    ):
        self.settings = settings
        self.browser_ws = browser_ws
        self.user_id = validate_segment(user_id, "user id")
        self.store = store or get_store()
        self.generator = generator or build_generator(settings)
        self.policy = DisciplinePolicy.from_settings(settings)

        self.router = ViewRouter()
        self.router.on_change(self._on_view_change)
        self.focus: FocusSessionController | None = None
        self.test: TestSession | None = None

        self.outbox: asyncio.Queue[dict] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._unsubscribers: list = []
        self._tasks: list[asyncio.Task] = []

    # -- lifecycle ---------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to the profile and today's plan and start forwarding."""
        self._loop = asyncio.get_running_loop()
        load_profile(
            self.store,
            self.user_id,
            default_score=self.settings.default_discipline_score,
            default_weak_subjects=self.settings.default_weak_subjects,
        )
        self._tasks.append(asyncio.create_task(self._forward_loop()))
        self._unsubscribers = [
            self.store.subscribe(
                self.user_id,
                PROFILE_COLLECTION,
                lambda doc: self._emit({"type": "profile", "profile": doc}),
                doc_id=PROFILE_DOC,
            ),
            self.store.subscribe(
                self.user_id,
                SCHEDULE_COLLECTION,
                lambda doc: self._emit({"type": "schedule", "schedule": doc}),
                doc_id=date_key(),
            ),
        ]
        logger.info("client_session_started", user_id=self.user_id)
        self._emit({"type": "view", "view": self.router.current.value})

    async def stop(self) -> None:
        """Tear down subscriptions and cancel every running task."""
        logger.info("client_session_stopping", user_id=self.user_id)
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        await self.router.close()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

    def _emit(self, data: dict) -> None:
        """Queue a frame; safe to call from store listeners on any thread."""
        if self._loop is not None and self._loop.is_running():
            self._loop.call_soon_threadsafe(self.outbox.put_nowait, data)
        else:
            self.outbox.put_nowait(data)

    async def _forward_loop(self) -> None:
        try:
            while True:
                data = await self.outbox.get()
                await self._send_to_browser(data)
        except asyncio.CancelledError:
            pass

    async def _send_to_browser(self, data: dict) -> None:
        """Send a message to the browser WebSocket."""
        try:
            await self.browser_ws.send_json(data)
        except Exception:
            logger.warning("browser_send_failed", type=data.get("type"))

    def _error(self, message: str) -> None:
        self._emit({"type": "error", "message": message})

    def _navigate_later(self, view: View, context: NavigationContext | None = None) -> None:
        """Navigate from inside a view-scoped task without cancelling itself."""
        self._tasks = [t for t in self._tasks if not t.done()]
        self._tasks.append(asyncio.create_task(self._navigate(view, context)))

    async def _navigate(self, view: View, context: NavigationContext | None = None) -> None:
        try:
            await self.router.navigate(view, context)
        except ValueError as e:
            self._error(str(e))

    # -- message dispatch --------------------------------------------------

    async def handle(self, message: dict) -> None:
        """Dispatch one browser message; failures become error frames."""
        msg_type = message.get("type", "")
        handler = getattr(self, f"_handle_{msg_type}", None)
        if handler is None:
            self._error(f"Unknown message type: {msg_type}")
            return
        try:
            await handler(message)
        except GenerationFailed as e:
            self._error(e.message)
        except (ValueError, InvalidTransition) as e:
            self._error(str(e))
        except (KeyError, TypeError):
            self._error(f"Malformed {msg_type} message.")

    async def _handle_navigate(self, message: dict) -> None:
        video = message.get("video")
        context = NavigationContext(
            active_task_index=message.get("task_index"),
            active_video=ActiveVideo(**video) if video else None,
            active_test=self.router.context.active_test if message.get("view") == View.TEST else None,
        )
        await self.router.navigate(message.get("view", ""), context)

    def _on_view_change(self, view: View, context: NavigationContext) -> None:
        self.focus = None
        self.test = None
        if view == View.FOCUS:
            self._enter_focus(context)
        elif view == View.TEST:
            self._enter_test(context.active_test)
        self._emit({"type": "view", "view": view.value})

    # -- focus -------------------------------------------------------------

    def _enter_focus(self, context: NavigationContext, custom: CustomTaskInput | None = None) -> None:
        schedule = get_schedule(self.store, self.user_id)
        task = resolve_task(schedule, context.active_task_index, custom, context.active_video)
        if task is None:
            self._error("Selected block does not exist.")
            return
        self.focus = FocusSessionController(
            self.store,
            self.user_id,
            task,
            policy=self.policy,
            video=context.active_video,
            on_complete=self._on_focus_complete,
        )
        self.focus.timer.on("paused", self._on_focus_paused)
        self.router.scope.spawn(self._focus_tick_loop(self.focus))
        self._emit({
            "type": "focus_state",
            "custom_mode": is_custom_mode(schedule, context.active_task_index, context.active_video),
            **self.focus.snapshot(),
        })

    def _require_focus(self) -> FocusSessionController:
        if self.focus is None:
            raise ValueError("No focus session is open.")
        return self.focus

    async def _handle_focus_custom(self, message: dict) -> None:
        """Replace the ad-hoc task while the timer has not started."""
        focus = self._require_focus()
        if focus.timer.state != TimerState.IDLE or not focus.task.is_ad_hoc:
            raise ValueError("Custom task can only be set before starting.")
        custom = CustomTaskInput(
            title=message.get("title", ""),
            duration=message.get("duration", focus.task.duration_min),
        )
        self._enter_focus(self.router.context, custom)

    async def _handle_focus_link(self, message: dict) -> None:
        self._require_focus().set_link(message.get("url", ""))

    async def _handle_focus_start(self, message: dict) -> None:
        self._require_focus().start()
        self._emit_focus_state()

    async def _handle_focus_pause(self, message: dict) -> None:
        self._require_focus().pause()
        self._emit_focus_state()

    async def _handle_focus_resume(self, message: dict) -> None:
        self._require_focus().resume()
        self._emit_focus_state()

    async def _handle_focus_toggle(self, message: dict) -> None:
        self._require_focus().toggle()
        self._emit_focus_state()

    async def _handle_focus_finish(self, message: dict) -> None:
        focus = self._require_focus()
        self._complete_focus(focus, focus.finish)

    async def _handle_video_duration(self, message: dict) -> None:
        self._require_focus().set_video_duration(float(message.get("seconds", 0)))
        self._emit_focus_state()

    async def _handle_visibility(self, message: dict) -> None:
        hidden = bool(message.get("hidden"))
        if self.focus is not None:
            self.focus.observe_visibility(hidden)
        elif self.test is not None and self.test.observe_visibility(hidden):
            self._emit({"type": "warning", "message": self.test.breach_warning})
            self._emit_test_state()

    def _emit_focus_state(self) -> None:
        if self.focus is not None:
            self._emit({"type": "focus_state", **self.focus.snapshot()})

    def _on_focus_paused(self, reason: str) -> None:
        if reason == "breach":
            self._emit({"type": "warning", "message": "Focus lost. Timer paused."})
            self._emit_focus_state()

    def _on_focus_complete(self, report: CompletionReport) -> None:
        self._emit({"type": "focus_complete", "report": report.model_dump(mode="json")})
        if report.warning:
            self._emit({"type": "warning", "message": report.warning})
        self._navigate_later(View.DASHBOARD)

    def _complete_focus(self, focus: FocusSessionController, action) -> None:
        """Run a step that may complete the session; a failed save still
        leaves the focus view."""
        try:
            action()
        except InvalidTransition:
            raise
        except Exception:
            logger.exception(
                "focus_completion_failed",
                user_id=self.user_id,
                task=focus.task.title,
            )
            self._error(FOCUS_SAVE_FAILED)
            self._navigate_later(View.DASHBOARD)

    async def _focus_tick_loop(self, focus: FocusSessionController) -> None:
        interval = self.settings.tick_interval_seconds
        while self.focus is focus and focus.timer.state != TimerState.COMPLETED:
            await asyncio.sleep(interval)
            if focus.timer.is_running:
                self._complete_focus(focus, focus.tick)
                self._emit({"type": "focus_tick", **focus.timer.snapshot()})

    # -- test --------------------------------------------------------------

    def _enter_test(self, active_test: ActiveTest) -> None:
        self.test = TestSession(
            active_test,
            apply_penalty=lambda delta: adjust_discipline(self.store, self.user_id, delta),
            penalty=self.settings.test_breach_penalty,
            on_submit=self._on_test_submitted,
        )
        self.router.scope.spawn(self._test_tick_loop(self.test))
        self._emit_test_state()

    def _require_test(self) -> TestSession:
        if self.test is None:
            raise ValueError("No test is open.")
        return self.test

    def _emit_test_state(self) -> None:
        if self.test is not None:
            self._emit({"type": "test_state", **self.test.snapshot()})

    async def _handle_test_answer(self, message: dict) -> None:
        self._require_test().select_option(int(message["option"]), message.get("question"))
        self._emit_test_state()

    async def _handle_test_goto(self, message: dict) -> None:
        self._require_test().goto(int(message["index"]))
        self._emit_test_state()

    async def _handle_test_next(self, message: dict) -> None:
        self._require_test().next()
        self._emit_test_state()

    async def _handle_test_previous(self, message: dict) -> None:
        self._require_test().previous()
        self._emit_test_state()

    async def _handle_test_language(self, message: dict) -> None:
        self._require_test().set_language(message.get("language", ""))
        self._emit_test_state()

    async def _handle_test_submit(self, message: dict) -> None:
        self._require_test().submit()

    def _on_test_submitted(self, result: TestResult) -> None:
        save_result(self.store, self.user_id, result)
        review = self.test.review() if self.test is not None else []
        self._emit({"type": "test_result", "result": result.model_dump(mode="json"), "review": review})

    async def _test_tick_loop(self, test: TestSession) -> None:
        interval = self.settings.tick_interval_seconds
        while self.test is test and not test.is_submitted:
            await asyncio.sleep(interval)
            test.tick()
            self._emit({"type": "test_tick", "time_left": test.time_left})

    def _open_test(self, active_test: ActiveTest) -> None:
        self._navigate_later(View.TEST, NavigationContext(active_test=active_test))

    # -- generation --------------------------------------------------------

    def _spawn_generation(self, coro: Any) -> None:
        """Run a generation call in the current view's scope."""
        self.router.scope.spawn(self._guarded(coro))

    async def _guarded(self, coro: Any) -> None:
        try:
            await coro
        except GenerationFailed as e:
            self._error(e.message)
        except ValueError as e:
            self._error(str(e))

    async def _handle_generate_plan(self, message: dict) -> None:
        weak_areas = message.get("weak_areas")
        if weak_areas is None:
            weak_areas = load_profile(self.store, self.user_id).weak_subjects
        service = ScheduleService(self.store, self.generator, target_hours=self.settings.target_hours)

        async def run() -> None:
            self._emit({"type": "busy", "task": "generate_plan"})
            schedule = await service.generate_plan(self.user_id, weak_areas)
            self._emit({"type": "plan_generated", "blocks": len(schedule.blocks)})

        self._spawn_generation(run())

    async def _handle_create_test(self, message: dict) -> None:
        material = get_material(self.store, self.user_id, message.get("material_id", ""))
        if material is None:
            raise ValueError("Material not found.")

        async def run() -> None:
            self._emit({"type": "busy", "task": "create_test"})
            test = await generate_material_test(
                self.generator,
                material,
                question_count=self.settings.mock_test_question_count,
                duration=self.settings.mock_test_duration_seconds,
                content_limit=self.settings.material_content_limit,
            )
            self._open_test(test)

        self._spawn_generation(run())

    def _vocab(self) -> VocabularyBuilder:
        return VocabularyBuilder(self.generator, batch_size=self.settings.vocab_batch_size)

    async def _handle_vocab_fetch(self, message: dict) -> None:
        builder = self._vocab()

        async def run() -> None:
            self._emit({"type": "busy", "task": "vocab_fetch"})
            words = await builder.fetch_new_words(self.user_id)
            self._emit({
                "type": "vocab_words",
                "words": [w.model_dump(mode="json") for w in words],
                "history_size": len(builder.history(self.user_id)),
            })

        self._spawn_generation(run())

    async def _handle_vocab_test(self, message: dict) -> None:
        builder = self._vocab()
        if not builder.history(self.user_id):
            raise ValueError("Vocabulary history is empty.")

        async def run() -> None:
            self._emit({"type": "busy", "task": "vocab_test"})
            self._open_test(await builder.start_history_test(self.user_id))

        self._spawn_generation(run())

    async def _handle_run_analysis(self, message: dict) -> None:
        coach = Coach(
            self.store,
            self.generator,
            target_hours=self.settings.target_hours,
            recent_limit=self.settings.recent_sessions_limit,
        )
        profile = load_profile(self.store, self.user_id)

        async def run() -> None:
            self._emit({"type": "busy", "task": "run_analysis"})
            text = await coach.run_deep_analysis(profile)
            self._emit({"type": "analysis", "text": text})

        self._spawn_generation(run())


async def handle_browser_websocket(websocket: WebSocket, settings: Settings) -> None:
    """Handle a browser WebSocket connection."""
    await websocket.accept()
    session: ClientSession | None = None

    try:
        while True:
            data = await websocket.receive_json()
            msg_type = data.get("type", "")

            if msg_type == "start_session":
                if session:
                    await session.stop()
                    session = None
                try:
                    session = ClientSession(settings, websocket, data.get("user_id", "default"))
                except ValueError as e:
                    await websocket.send_json({"type": "error", "message": str(e)})
                    continue
                await session.start()

            elif msg_type == "stop_session":
                if session:
                    await session.stop()
                    session = None

            elif session is None:
                await websocket.send_json({"type": "error", "message": "No active session."})

            else:
                await session.handle(data)

    except WebSocketDisconnect:
        logger.info("browser_disconnected")
    except Exception:
        logger.exception("websocket_handler_error")
    finally:
        if session:
            await session.stop()
