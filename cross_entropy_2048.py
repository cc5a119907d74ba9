"""
Cross-entropy method for the weights of the greedy 2048 player.

Each generation samples weight vectors from one gaussian per dimension,
plays games with every sample, keeps the best tenth and refits the gaussians
on them. Described in http://hal.inria.fr/docs/00/41/89/30/PDF/article.pdf

Usage: python cross_entropy_2048.py [--ngen N] [--seed S]
Press Ctrl-C to stop when no generation count is given.
"""
import argparse
import csv
import random
import signal
import threading
import time
from functools import partial
from itertools import count
from operator import attrgetter

import numpy as np
import pandas as pd
from deap import base, creator, tools

from features_2048 import N_FEATURES
from greedy_agent_2048 import Cancelled, GreedyPlayer, play_game, play_games

NUM_SAMPLES = 100        # weight vectors generated at each generation
ELITE_FRACTION = 0.1
INITIAL_VARIANCE = 100.0
NOISE = 10.0             # added to every variance so the search never collapses
NUM_GAMES = 1            # games played per sample
NUM_EVAL_GAMES = 100     # games played with the best weights at the end

creator.create("FitnessMax2048CE", base.Fitness, weights=(1.0,))
creator.create("IndividualCE", list, fitness=creator.FitnessMax2048CE)


class Strategy:
    """
    Independent gaussian per dimension, in the generate/update style of
    deap.cma.Strategy.
    """

    def __init__(self, centroid, variance=INITIAL_VARIANCE, lambda_=NUM_SAMPLES,
                 elite_fraction=ELITE_FRACTION, noise=NOISE, rng=None):
        self.mean = np.array(centroid, dtype=float)
        self.dim = len(self.mean)
        if np.isscalar(variance):
            variance = [variance] * self.dim
        self.variance = np.array(variance, dtype=float)
        if self.variance.shape != self.mean.shape:
            raise ValueError("Centroid and variance must have the same length")

        self.lambda_ = lambda_
        self.mu = max(1, int(lambda_ * elite_fraction))
        self.noise = noise
        self.rng = rng if rng is not None else np.random.default_rng()

    def generate(self, ind_init):
        samples = self.rng.normal(self.mean, np.sqrt(self.variance),
                                  size=(self.lambda_, self.dim))
        return [ind_init(sample.tolist()) for sample in samples]

    def update(self, population):
        population = sorted(population, key=attrgetter("fitness"), reverse=True)
        elite = np.array(population[:self.mu], dtype=float)

        mu = elite.mean(axis=0)
        sigma2 = (elite * elite).mean(axis=0) - mu * mu   # E[X^2] - E[X]^2
        sigma2 = np.maximum(sigma2, 0.0)

        self.mean = mu
        self.variance = sigma2 + self.noise
        return population[:self.mu]


def evaluate(individual, num_games=NUM_GAMES, rng=None, rows=4, columns=4,
             expectation=False, cancel=None):
    player = GreedyPlayer(individual, expectation=expectation)
    return (play_games(player, num_games, rng=rng, rows=rows, columns=columns,
                       cancel=cancel),)


def make_toolbox(strategy, num_games=NUM_GAMES, rng=None, rows=4, columns=4,
                 expectation=False, cancel=None):
    toolbox = base.Toolbox()
    toolbox.register("generate", strategy.generate, creator.IndividualCE)
    toolbox.register("update", strategy.update)
    toolbox.register("evaluate", partial(evaluate, num_games=num_games,
                                         rng=rng or random.Random(), rows=rows,
                                         columns=columns, expectation=expectation,
                                         cancel=cancel))
    return toolbox


def format_weights(weights):
    return "\n".join("  %.2f," % w for w in weights)


def run(toolbox, ngen=None, cancel=None, verbose=True):
    """
    Runs generations until `ngen` is reached or `cancel` is set. A generation
    interrupted by `cancel` is dropped. Returns (hall of fame, logbook).
    """
    hof = tools.HallOfFame(1)

    stats = tools.Statistics(lambda ind: ind.fitness.values)
    stats.register("avg", np.mean)
    stats.register("std", np.std)
    stats.register("min", np.min)
    stats.register("max", np.max)

    logbook = tools.Logbook()
    logbook.header = ["gen", "nevals"] + stats.fields + ["best_ever"]

    generations = range(ngen) if ngen is not None else count()
    for gen in generations:
        if cancel is not None and cancel.is_set():
            break

        population = toolbox.generate()
        try:
            fitnesses = list(map(toolbox.evaluate, population))
        except Cancelled:
            break
        for ind, fit in zip(population, fitnesses):
            ind.fitness.values = fit

        hof.update(population)
        toolbox.update(population)

        record = stats.compile(population)
        best_ever = hof[0].fitness.values[0]
        logbook.record(gen=gen, nevals=len(population), best_ever=best_ever, **record)

        if verbose:
            print(f"Gen {gen}: mean={record['avg']:.2f}, std dev={record['std']:.2f}, "
                  f"worst={record['min']:.2f}, best={record['max']:.2f}, "
                  f"best ever={best_ever:.2f}")
            print("  with weights:")
            print(format_weights(hof[0]))

    return hof, logbook


def evaluate_weights(weights, num_games, rng, rows=4, columns=4, expectation=False):
    player = GreedyPlayer(weights, expectation=expectation)
    results = []
    for i in range(num_games):
        sc, mx, mv = play_game(player, seed=rng.randrange(1, 2**31),
                               rows=rows, columns=columns)
        results.append((i, mx, sc, mv))
    return results


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--ngen", type=int, default=None,
                        help="number of generations (default: until Ctrl-C)")
    parser.add_argument("--samples", type=int, default=NUM_SAMPLES)
    parser.add_argument("--games", type=int, default=NUM_GAMES,
                        help="games played per sample")
    parser.add_argument("--noise", type=float, default=NOISE)
    parser.add_argument("--expectation", action="store_true",
                        help="average evaluations over every possible spawn")
    parser.add_argument("--eval-games", type=int, default=NUM_EVAL_GAMES)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log", default="cross_entropy_log.csv")
    parser.add_argument("--weights-out", default="best_cross_entropy_weights.txt")
    parser.add_argument("--eval-out", default="best_cross_entropy_eval.csv")
    args = parser.parse_args(argv)

    seed = args.seed if args.seed is not None else int(time.time())
    print("Random seed: " + str(seed))
    rng = random.Random(seed)

    strategy = Strategy(
        centroid=[0.0] * N_FEATURES,
        variance=INITIAL_VARIANCE,
        lambda_=args.samples,
        noise=args.noise,
        rng=np.random.default_rng(seed),
    )
    cancel = threading.Event()
    toolbox = make_toolbox(strategy, num_games=args.games, rng=rng,
                           expectation=args.expectation, cancel=cancel)

    # Ctrl-C stops the search after the current game, finished generations are kept
    signal.signal(signal.SIGINT, lambda signum, frame: cancel.set())
    hof, logbook = run(toolbox, ngen=args.ngen, cancel=cancel)
    signal.signal(signal.SIGINT, signal.default_int_handler)
    if not len(hof):
        print("No generation completed")
        return None

    pd.DataFrame(logbook).to_csv(args.log, index=False)
    print("Saved evolution log to " + args.log)

    np.savetxt(args.weights_out, hof[0])
    print("Best weights: " + str(list(hof[0])))

    results = evaluate_weights(hof[0], args.eval_games, rng, expectation=args.expectation)
    avg_max = np.mean([r[1] for r in results])
    avg_score = np.mean([r[2] for r in results])
    avg_moves = np.mean([r[3] for r in results])

    with open(args.eval_out, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["Game", "MaxTile", "Score", "Moves"])
        writer.writerows(results)
        writer.writerow([])
        writer.writerow(["Averages", avg_max, avg_score, avg_moves])

    print(f"Results over {args.eval_games} evals: max tile={avg_max:.1f}, "
          f"score={avg_score:.1f}, moves={avg_moves:.1f}")
    print(f"Saved evaluation results to {args.eval_out}")
    return hof, logbook


if __name__ == "__main__":
    main()
