from datetime import datetime, timezone
from pathlib import Path
import time

import hydra
from hydra.utils import instantiate
from loguru import logger
from omegaconf import DictConfig, OmegaConf

from neurodrive.evolution.config import EvolutionConfig
from neurodrive.evolution.engine import EvolutionEngine
from neurodrive.persistence import (
    SavedModel,
    load_model,
    restore_engine,
    saved_settings,
)
from neurodrive.runner import TrainingRunner
from neurodrive.simulation.base import Simulation
from neurodrive.utils.logger_setup import setup_logger
from neurodrive.utils.trackers import LogWriter, NullWriter, TensorBoardWriter


def build_writer(cfg: DictConfig) -> LogWriter:
    if not cfg.tracker.enabled:
        return NullWriter()
    return TensorBoardWriter.from_logdir(cfg.tracker.logdir, prefix=cfg.tracker.prefix)


def run_experiment(cfg: DictConfig) -> None:
    start_time = time.time()

    logger.info("=" * 80)
    logger.info("NeuroDrive Training")
    logger.info("=" * 80)
    logger.info("Start time: {}", datetime.now(timezone.utc).isoformat())

    writer: LogWriter | None = None
    try:
        logger.info("Step 1/3: Initializing components...")
        saved: SavedModel | None = None
        if cfg.runner.resume_from:
            saved = load_model(Path(hydra.utils.to_absolute_path(cfg.runner.resume_from)))
            if cfg.runner.restore_config and saved.config is not None:
                cfg.evolution = OmegaConf.merge(cfg.evolution, saved_settings(saved))
                logger.info("Using the configuration stored with the saved model")

        evolution_config = EvolutionConfig.from_dict(
            OmegaConf.to_container(cfg.evolution, resolve=True)
        )
        engine = EvolutionEngine(evolution_config)
        simulation: Simulation = instantiate(cfg.simulation)
        writer = build_writer(cfg)

        if saved is not None and restore_engine(engine, saved):
            logger.info("Resumed from saved generation {}", saved.generation)

        checkpoint_path = cfg.runner.checkpoint_path
        runner = TrainingRunner(
            engine,
            simulation,
            writer=writer,
            max_generations=cfg.runner.max_generations,
            checkpoint_path=Path(checkpoint_path) if checkpoint_path else None,
            checkpoint_every=cfg.runner.checkpoint_every,
        )
        logger.info("Step 1/3: Complete")

        logger.info("Step 2/3: Training...")
        max_gens: int | None = cfg.runner.max_generations
        logger.info("  Max generations: {}", max_gens if max_gens else "unlimited")
        logger.info("  Population size: {}", evolution_config.genetic.population_size)
        runner.run()

        logger.info("Step 3/3: Summary")
        logger.info(
            "  Best fitness: {:.1f} | laps: {} | best lap: {}",
            engine.best_fitness,
            engine.best_laps,
            engine.best_lap_time,
        )
    except Exception as e:  # pylint: disable=broad-except
        logger.error("Training failed: {}", e)
        raise
    finally:
        if writer is not None:
            writer.close()
        duration = time.time() - start_time
        logger.info("Total duration: {:.2f} seconds", duration)
        logger.info("End time: {}", datetime.now(timezone.utc).isoformat())
        logger.info("=" * 80)


@hydra.main(version_base=None, config_path="config", config_name="config")
def main(cfg: DictConfig) -> None:
    """Main entrypoint with Hydra configuration management."""
    log_file_path = setup_logger(
        log_dir=cfg.logging.log_dir,
        level=cfg.logging.level,
        rotation=cfg.logging.rotation,
        retention=cfg.logging.retention,
    )
    logger.info(
        "Experiment working directory: {}.",
        hydra.core.hydra_config.HydraConfig.get().runtime.output_dir,
    )
    logger.info("Log file: {}", log_file_path)
    run_experiment(cfg)


if __name__ == "__main__":
    main()
