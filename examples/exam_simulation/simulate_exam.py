#!/usr/bin/env python3
"""
Exam Simulation Example

Walks the default checkpoint course, missing two checkpoints, and
shows the running score after every instruction.

Run with: python simulate_exam.py
"""

from drivecoach import SessionScoringEngine, SessionType
from drivecoach.scoring import is_passing
from drivecoach.session import InMemorySessionStorage


def main():
    print("=" * 60)
    print("DriveCoach Exam Simulation")
    print("=" * 60)

    engine = SessionScoringEngine(InMemorySessionStorage())
    engine.start_session(SessionType.SIMULATION)

    outcomes = [True, False, True, False, True]
    result = None
    for passed in outcomes:
        checkpoint = engine.course.current
        print(f"\n   [{checkpoint.id}/{len(engine.course.checkpoints)}] "
              f"{checkpoint.instruction} (in {checkpoint.distance_m:.0f} m)")
        result = engine.handle_checkpoint_pass(passed)
        print(f"   {'OK' if passed else 'MISSED'} -> score {engine.current_score()}")

    score = result.session.final_score
    print(f"\nFinal score: {score} ({'approved' if is_passing(score) else 'failed'})")
    print(f"XP earned:   {result.session.xp_earned}")
    print("=" * 60)


if __name__ == "__main__":
    main()
