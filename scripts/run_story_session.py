"""
Play a WordTales story in the terminal: narration is printed and choices are typed.

Usage:
    python scripts/run_story_session.py --language en-US --tone funny --category "Food & Drink"

Environment variables:
    WORDTALES_BACKEND_URL   - HTTP generation endpoint; omit to generate in-process
    OPENAI_API_KEY          - used by the in-process LiteLLM text generation
    REPLICATE_API_TOKEN     - used by the in-process Replicate image generation
    WORDTALES_*             - any other setting of WordTalesConfig (e.g. WORDTALES_TARGET_SCENE_COUNT)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any, Sequence

from tqdm.auto import tqdm

from wordtales import WordTalesConfig, WordTalesOrchestrator
from wordtales.common import coerce_enum
from wordtales.narration import Utterance, Voice
from wordtales.story_generation import WordCategory


class ConsoleSpeechSynthesizer:
    """Prints each utterance instead of speaking it."""

    def get_voices(self) -> Sequence[Voice]:
        return (Voice(name="Console", lang="en-US", local_service=True),)

    def speak(self, utterance: Utterance, *, on_start, on_end, on_error) -> None:
        loop = asyncio.get_running_loop()

        def _run() -> None:
            on_start()
            print(f"  🔊 {utterance.text}")
            on_end()

        loop.call_soon(_run)

    def cancel(self) -> None:
        return None


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play an interactive WordTales story in the terminal.")
    parser.add_argument("--config", default=None, help="Optional YAML or JSON config file.")
    parser.add_argument("--language", default=None, help="th-TH or en-US.")
    parser.add_argument("--tone", default=None, help="Story tone name or label (e.g. ADVENTURE).")
    parser.add_argument("--category", default=None, help="Word category label; random when omitted.")
    parser.add_argument(
        "--no-images",
        action="store_true",
        help="Use placeholder illustrations instead of generating images.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


class ProgressTracker:
    """
    Command-line progress updates for a WordTales play session.
    """

    def __init__(self) -> None:
        self._card_bar: tqdm | None = None

    def __call__(self, stage: str, payload: dict[str, Any]) -> None:
        match stage:
            case "vocab:loading":
                self._write(f"Round {payload.get('round', 1)}: choosing today's words...")
            case "vocab:image":
                total = payload.get("total", 0)
                if self._card_bar is None:
                    self._card_bar = tqdm(total=total, desc="Word cards", unit="card")
                word = payload.get("word")
                if word:
                    self._card_bar.set_description(f"Card {payload.get('index')}/{total}: {word}")
                if payload.get("index", 0) > 1:
                    self._card_bar.update(1)
            case "vocab:ready":
                if self._card_bar is not None:
                    self._card_bar.update(self._card_bar.total - self._card_bar.n)
                self.close()
                category = payload.get("category", "")
                self._write(f"{payload.get('total_words', 0)} words ready ({category}).")
            case "story:starting":
                words = ", ".join(payload.get("words") or [])
                self._write(f"Starting a story with: {words}")
            case "scene:generating":
                self._write(f"Writing scene {payload.get('scene_number')}...")
            case "scene:ready":
                if payload.get("is_fallback"):
                    self._write("The storyteller stumbled; using a backup scene.")
            case "story:complete":
                title = payload.get("title") or "Untitled"
                self._write(f"The end: \"{title}\" ({payload.get('total_scenes', 0)} scenes).")
            case "story:finished":
                self._write(f"Saved. Next up: round {payload.get('next_round')}.")
            case "session:home":
                self._write("Back to the home screen.")
                self.close()

    def close(self) -> None:
        if self._card_bar is not None:
            self._card_bar.close()
            self._card_bar = None

    @staticmethod
    def _write(message: str) -> None:
        tqdm.write(message)


async def play(args: argparse.Namespace) -> int:
    config = WordTalesConfig.from_file(args.config) if args.config else WordTalesConfig.from_env()
    config = config.with_overrides(
        language=args.language,
        story_tone=args.tone,
        image_generation_enabled=False if args.no_images else None,
        reveal_interval_seconds=0.0,
        debounce_seconds=0.0,
    )
    category = coerce_enum(WordCategory, args.category) if args.category else None

    progress = ProgressTracker()
    orchestrator = WordTalesOrchestrator(
        config=config,
        synthesizer=ConsoleSpeechSynthesizer(),
        progress_callback=progress,
        notice_callback=lambda notice: tqdm.write(f"⚠️  {notice}"),
    )
    try:
        cards = await orchestrator.start_vocabulary_round(category)
        print("\nToday's words:")
        for card in cards:
            print(f"  {card.word.thai} ({card.word.english}) - {card.image_url}")

        scene = await orchestrator.start_story([card.word for card in cards])
        while scene is not None:
            narrator = orchestrator.narrator
            if narrator is not None:
                await narrator.wait_idle()
            print(f"\n🖼  {scene.image_url}\n")
            if scene.is_final:
                break
            for index, choice in enumerate(scene.choices, start=1):
                print(f"  {index}. {choice}")
            answer = (await asyncio.to_thread(input, "Your choice (number or your own idea): ")).strip()
            if answer.isdigit() and 1 <= int(answer) <= len(scene.choices):
                answer = scene.choices[int(answer) - 1]
            scene = await orchestrator.choose(answer)

        record = await orchestrator.complete_story()
        if record is not None:
            print("\nStory summary:")
            print(record.to_yaml())
    finally:
        progress.close()
        await orchestrator.aclose()
    return 0


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(play(args))


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
