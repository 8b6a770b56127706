"""Play Hourglass rounds with scripted players for demo purposes.

Usage:
    python scripts/demo_round.py catalog          # List bundled cards and characters
    python scripts/demo_round.py play [N] [SEED]  # Auto-play N rounds (default: to the end)

Players pick a random affordable option, bid a random amount they can pay,
and always take the first consolation candidate.
"""

from __future__ import annotations

import random
import sys
from pathlib import Path

from hourglass.config import Settings
from hourglass.core.game import new_game
from hourglass.core.round_engine import RoundEngine
from hourglass.core.seeding import Catalog, load_catalog
from hourglass.models.round import Prompt, RoundProgress

SEATS = {"A": "tinkerer", "B": "duelist", "C": "twins"}


def _catalog(settings: Settings) -> Catalog:
    return load_catalog(
        Path(settings.hourglass_cards_path), Path(settings.hourglass_characters_path)
    )


def catalog() -> None:
    """Print the reference data the demo plays with."""
    data = _catalog(Settings())
    print("Cards:")
    for card in data.cards.values():
        print(f"  {card.id:>3}  {card.name:<24} price {card.price}")
    print("Characters:")
    for char in data.characters.values():
        print(f"  {char.id:<10} start {char.start_time:>2}  {char.skill_label}")


def _answer(engine: RoundEngine, prompt: Prompt, rng: random.Random) -> RoundProgress:
    if prompt.kind == "bid":
        if prompt.max_bid < prompt.min_bid or rng.random() < 0.25:
            return engine.submit_bid(0)
        return engine.submit_bid(rng.randint(prompt.min_bid, prompt.max_bid))
    if prompt.kind == "consolation_choice":
        return engine.submit_consolation_choice(prompt.candidates[0])
    player = engine.state.player(prompt.player_id)
    return engine.submit_consolation_purchase_decision(player.time >= prompt.price)


def play(rounds: int | None, seed: int | None) -> None:
    settings = Settings()
    data = _catalog(settings)
    rng = random.Random(seed)
    state = new_game(data.cards, data.characters, SEATS, settings.game_rules())
    engine = RoundEngine(state)

    played = 0
    while not state.game_over and (rounds is None or played < rounds):
        engine.draw_market(rng)
        print(f"Round {state.round_number}: market {', '.join(state.market)}")
        for pid in state.player_ids:
            engine.submit_action(pid, rng.choice(engine.action_options(pid)))
        progress = engine.resolve_round()
        while progress.prompt is not None:
            progress = _answer(engine, progress.prompt, rng)
        outcome = progress.outcome
        print(f"  acquired {outcome.acquired or '-'}  discarded {len(outcome.discarded)}")
        print(f"  times {state.times}")
        played += 1

    print()
    for pid in state.player_ids:
        print(f"Player {pid} ({state.player(pid).character.name}): {state.owned[pid]}")
        for event in state.ledger.events(pid):
            print(f"  r{event.round:<2} {event.type:<13} {event.detail} -> {event.time_after}")


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        return

    cmd = sys.argv[1]
    if cmd == "catalog":
        catalog()
    elif cmd == "play":
        n = int(sys.argv[2]) if len(sys.argv) > 2 else None
        seed = int(sys.argv[3]) if len(sys.argv) > 3 else None
        play(n, seed)
    else:
        print(f"Unknown command: {cmd}")
        print(__doc__)


if __name__ == "__main__":
    main()
