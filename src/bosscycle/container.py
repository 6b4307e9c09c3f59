"""Dependency injection container for bosscycle services."""

from dependency_injector import containers, providers
import diskcache

from bosscycle.boss.bomb_timer_tracker import BombTimerTracker
from bosscycle.boss.cooldown_estimator import CooldownEstimator
from bosscycle.boss.model import BossModel
from bosscycle.boss.next_action_predictor import NextActionPredictor
from bosscycle.boss.state_machine import BossCycleStateMachine
from bosscycle.ocr.engine import create_ocr_engine
from bosscycle.ocr.log_parser import LogTextParser
from bosscycle.orchestration.analysis_pipeline import AnalysisPipeline
from bosscycle.orchestration.analysis_session import AnalysisSession
from bosscycle.services.app_data import AppData
from bosscycle.services.cache_service import CacheService
from bosscycle.vision.hp_bar_analyzer import HpBarAnalyzer
from bosscycle.vision.icon_detector import IconDetector


class Container(containers.DeclarativeContainer):
    """Application dependency injection container.

    Reference data, analyzers and the OCR engine are Singletons. Everything
    holding combat state is a Factory so each session starts clean.
    """

    wiring_config = containers.WiringConfiguration(
        modules=[
            "bosscycle.cli.analyze_cli",
            "bosscycle.cli.regions_cli",
            "bosscycle.cli.model_cli",
        ]
    )

    config = providers.Configuration()

    app_data = providers.Singleton(
        AppData,
        cache_dir=config.cache_dir,
        debug_enabled=config.debug,
    )

    disk_cache = providers.Singleton(
        diskcache.Cache,
        directory=app_data.provided.regions_dir,
    )

    cache_service = providers.Singleton(
        CacheService,
        cache=disk_cache,
    )

    boss_model = providers.Singleton(
        BossModel.load,
        path=config.boss_data_path,
    )

    hp_analyzer = providers.Singleton(HpBarAnalyzer)

    icon_detector = providers.Singleton(IconDetector)

    ocr_engine = providers.Singleton(
        create_ocr_engine,
        name=config.ocr_engine,
    )

    # Factory services (new instance per session)
    log_parser = providers.Factory(
        LogTextParser,
        known_actions=boss_model.provided.known_actions.call(),
        reset_phrases=boss_model.provided.reset_trigger_phrases.call(),
        aliases=boss_model.provided.action_aliases.call(),
    )

    state_machine = providers.Factory(BossCycleStateMachine, model=boss_model)

    cooldown_estimator = providers.Factory(CooldownEstimator, model=boss_model)

    predictor = providers.Factory(NextActionPredictor, model=boss_model)

    bomb_tracker = providers.Factory(BombTimerTracker)

    # frame_source and regions are passed at call time
    analysis_pipeline = providers.Factory(
        AnalysisPipeline,
        hp_analyzer=hp_analyzer,
        icon_detector=icon_detector,
        ocr_engine=ocr_engine,
        parser=log_parser,
        model=boss_model,
        state_machine=state_machine,
        cooldown_estimator=cooldown_estimator,
        predictor=predictor,
        bomb_tracker=bomb_tracker,
    )

    analysis_session = providers.Factory(
        AnalysisSession,
        tick_interval=config.tick_interval,
    )
