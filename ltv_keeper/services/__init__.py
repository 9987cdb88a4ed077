"""Service modules"""
from .adjuster import PositionAdjuster
from .controller import Controller, run_until_stopped
from .evaluator import LtvEvaluator

__all__ = ["PositionAdjuster", "LtvEvaluator", "Controller", "run_until_stopped"]
