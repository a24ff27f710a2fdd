"""FastAPI server that exposes the learner page and session events."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
import uvicorn

from scorm_quiz.constants.about import APP_NAME, APP_VERSION
from scorm_quiz.constants.network_constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    STATE_POLL_INTERVAL_MS,
)
from scorm_quiz.core.markdown_math_renderer import renderer
from scorm_quiz.core.models import DisplayState, SessionPhase
from scorm_quiz.core.session_controller import SessionController

logger = logging.getLogger(__name__)

_MEDIA_ROUTE = "/media"

_LEARNER_PAGE_HTML = """<!doctype html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <title>__APP_NAME__</title>
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <style>
      :root { font-family: 'Inter', system-ui, sans-serif; background: #282832; color: #f5f7ff; }
      body { margin: 0; padding: 1.5rem; display: flex; flex-direction: column; gap: 1rem; }
      .card { background: #111a30; border-radius: 0.75rem; padding: 1.5rem; box-shadow: 0 0.5rem 1.5rem rgba(0, 0, 0, 0.4); }
      .hidden { display: none; }
      .primary-button { border: none; border-radius: 0.75rem; padding: 0.85rem 1.5rem; font-size: 1rem; background: #3c5096; color: #fff; cursor: pointer; }
      .primary-button:hover { background: #6496ff; }
      .options-grid { display: grid; grid-template-columns: repeat(2, minmax(180px, 1fr)); gap: 0.75rem; }
      .option-button { border: 1px solid #c8c8c8; border-radius: 0.6rem; padding: 1rem; font-size: 1.1rem; background: #3c5096; color: #fff; cursor: pointer; }
      .option-button img { display: block; max-width: 100%; max-height: 16rem; margin: 0 auto 0.5rem; }
      .option-button:disabled { cursor: default; }
      .option-button.correct { background: rgba(0, 200, 0, 0.7); }
      .option-button.wrong { background: rgba(220, 0, 0, 0.7); }
      #feedback { min-height: 1.5rem; font-size: 1.4rem; text-align: center; }
      #progress { color: #969696; text-align: center; }
      #result-title { font-size: 2rem; }
    </style>
    <script>
      window.MathJax = { tex: { inlineMath: [['$','$']], displayMath: [['$$','$$']] }, svg: { fontCache: 'global' } };
    </script>
    <script defer src=\"https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js\"></script>
  </head>
  <body>
    <section class=\"card\" id=\"loading-card\"><p>Loading…</p></section>
    <section class=\"card hidden\" id=\"start-card\">
      <h1>__APP_NAME__</h1>
      <p id=\"start-count\"></p>
      <button id=\"begin-button\" class=\"primary-button\">Start quiz</button>
    </section>
    <section class=\"card hidden\" id=\"quiz-card\">
      <div id=\"question-container\"></div>
      <div id=\"options-container\" class=\"options-grid\"></div>
      <p id=\"feedback\"></p>
      <p id=\"progress\"></p>
    </section>
    <section class=\"card hidden\" id=\"results-card\">
      <p id=\"result-title\"></p>
      <p id=\"result-score\"></p>
      <p id=\"result-detail\"></p>
      <button id=\"retry-button\" class=\"primary-button\">Try again</button>
    </section>
    <script>
      const cards = {
        LOADING: document.getElementById('loading-card'),
        START: document.getElementById('start-card'),
        QUIZZING: document.getElementById('quiz-card'),
        RESULTS: document.getElementById('results-card'),
      };
      const questionContainer = document.getElementById('question-container');
      const optionsContainer = document.getElementById('options-container');
      const feedbackEl = document.getElementById('feedback');
      const progressEl = document.getElementById('progress');
      let renderedQuestion = null;

      function showPhase(phase) {
        Object.entries(cards).forEach(([name, card]) => card.classList.toggle('hidden', name !== phase));
      }

      async function post(path, body) {
        const response = await fetch(path, {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify(body || {})
        });
        await refresh();
        return response;
      }

      function renderQuestion(state) {
        const key = `${state.question_number}|${state.options.map(o => o.label_html).join('|')}`;
        if (key !== renderedQuestion) {
          renderedQuestion = key;
          questionContainer.innerHTML = `<strong>Q${state.question_number}:</strong> ${state.question_html}`;
          optionsContainer.innerHTML = '';
          state.options.forEach((option, index) => {
            const button = document.createElement('button');
            button.className = 'option-button';
            button.innerHTML = (option.image_url ? `<img src="${option.image_url}" alt="" />` : '') + option.label_html;
            button.addEventListener('click', () => post('/answer', { selected_option_index: index }));
            optionsContainer.appendChild(button);
          });
          if (window.MathJax && window.MathJax.typesetPromise) {
            window.MathJax.typesetPromise([questionContainer, optionsContainer]).catch(() => {});
          }
        }
        const buttons = optionsContainer.querySelectorAll('.option-button');
        buttons.forEach((button, index) => {
          button.disabled = Boolean(state.feedback);
          button.classList.remove('correct', 'wrong');
          if (state.feedback) {
            if (index === state.feedback.correct_index) button.classList.add('correct');
            else if (index === state.feedback.selected_index) button.classList.add('wrong');
          }
        });
        if (state.feedback) {
          feedbackEl.textContent = state.feedback.is_correct ? 'Correct!' : 'Wrong answer!';
          feedbackEl.style.color = state.feedback.is_correct ? '#00ff00' : '#ff0000';
        } else {
          feedbackEl.textContent = '';
        }
        progressEl.textContent = `Progress: ${state.question_number} / ${state.total_questions} | Score: ${state.score}`;
      }

      function renderResults(outcome) {
        const title = document.getElementById('result-title');
        if (outcome.percentage >= 80) {
          title.textContent = 'Excellent work!';
          title.style.color = '#00ff96';
        } else if (outcome.percentage >= 50) {
          title.textContent = 'Not bad, keep going!';
          title.style.color = '#ffd700';
        } else {
          title.textContent = 'Keep practising!';
          title.style.color = '#96c8ff';
        }
        document.getElementById('result-score').textContent = `Your score: ${outcome.percentage}`;
        document.getElementById('result-detail').textContent = `(${outcome.score} / ${outcome.total_questions} correct)`;
      }

      async function refresh() {
        try {
          const response = await fetch('/state');
          const state = await response.json();
          showPhase(state.phase);
          if (state.phase === 'START') {
            renderedQuestion = null;
            document.getElementById('start-count').textContent = `${state.total_questions} questions`;
          } else if (state.phase === 'QUIZZING') {
            renderQuestion(state);
          } else if (state.phase === 'RESULTS' && state.outcome) {
            renderResults(state.outcome);
          }
        } catch (error) {
          console.error('Error fetching state:', error);
        }
      }

      document.getElementById('begin-button').addEventListener('click', () => post('/begin'));
      document.getElementById('retry-button').addEventListener('click', () => post('/retry'));
      refresh();
      setInterval(refresh, __POLL_INTERVAL_MS__);
    </script>
  </body>
</html>
"""


class AnswerPayload(BaseModel):
    """Payload schema for submitted answers."""

    selected_option_index: int


def _get_controller_dependency(controller: SessionController):
    def dependency() -> SessionController:
        return controller

    return dependency


def _image_url(image: str | None, has_media: bool) -> str | None:
    if not image:
        return None
    if image.startswith(("http://", "https://", "/")) or not has_media:
        return image
    return f"{_MEDIA_ROUTE}/{image.removeprefix('./')}"


def serialize_display_state(state: DisplayState, has_media: bool = False) -> dict[str, object]:
    payload: dict[str, object] = {
        "phase": state.phase.value,
        "score": state.score,
        "total_questions": state.total_questions,
        "progress_fraction": state.progress_fraction,
        "question_number": state.question_number,
        "question_html": None,
        "options": [],
        "feedback": None,
        "outcome": None,
    }
    if state.question_text is not None:
        payload["question_html"] = renderer.render_prompt(state.question_text)
    if state.shuffled_options:
        payload["options"] = [
            {
                "label_html": renderer.render_option(option.label),
                "image_url": _image_url(option.image, has_media),
            }
            for option in state.shuffled_options
        ]
    if state.feedback is not None:
        payload["feedback"] = {
            "selected_index": state.feedback.selected_index,
            "correct_index": state.feedback.correct_index,
            "is_correct": state.feedback.is_correct,
        }
    if state.outcome is not None:
        payload["outcome"] = {
            "percentage": state.outcome.percentage,
            "passed": state.outcome.passed,
            "elapsed_seconds": state.outcome.elapsed_seconds,
            "score": state.outcome.score,
            "total_questions": state.outcome.total_questions,
        }
    return payload


def create_api_app(controller: SessionController, media_root: Path | None = None) -> FastAPI:
    """Create a FastAPI application wired to the provided session controller."""

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if controller.phase is SessionPhase.LOADING:
            controller.start()
        yield
        controller.shutdown()

    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, lifespan=lifespan)
    controller_dep = _get_controller_dependency(controller)
    has_media = media_root is not None and media_root.is_dir()
    if has_media:
        app.mount(_MEDIA_ROUTE, StaticFiles(directory=str(media_root)), name="media")

    page = _LEARNER_PAGE_HTML.replace("__APP_NAME__", APP_NAME).replace(
        "__POLL_INTERVAL_MS__", str(STATE_POLL_INTERVAL_MS)
    )

    @app.get("/", response_class=HTMLResponse)
    def serve_learner_page() -> str:
        return page

    @app.get("/state")
    def get_state(session: SessionController = Depends(controller_dep)) -> dict[str, object]:
        return serialize_display_state(session.get_display_state(), has_media=has_media)

    @app.post("/begin")
    def begin(session: SessionController = Depends(controller_dep)) -> dict[str, object]:
        if not session.on_begin():
            raise HTTPException(status_code=409, detail="The quiz cannot be started right now.")
        return serialize_display_state(session.get_display_state(), has_media=has_media)

    @app.post("/answer")
    def submit_answer(
        payload: AnswerPayload,
        session: SessionController = Depends(controller_dep),
    ) -> dict[str, object]:
        try:
            result = session.on_select_option(payload.selected_option_index)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        if result is None:
            raise HTTPException(status_code=409, detail="No answer is being accepted right now.")
        return {
            "selected_index": result.selected_index,
            "correct_index": result.correct_index,
            "is_correct": result.is_correct,
        }

    @app.post("/retry")
    def retry(session: SessionController = Depends(controller_dep)) -> dict[str, object]:
        if not session.on_retry():
            raise HTTPException(status_code=409, detail="There is no finished attempt to retry.")
        return serialize_display_state(session.get_display_state(), has_media=has_media)

    return app


def run_api_server(
    controller: SessionController,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    media_root: Path | None = None,
    log_level: str = "info",
) -> None:
    """Serve the learner page until interrupted."""
    app = create_api_app(controller, media_root=media_root)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=log_level)
    server = uvicorn.Server(config)
    logger.info("Learner page available at http://%s:%d/", host, port)
    server.run()
