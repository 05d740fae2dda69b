"""Gradient-based and evaluation-based tools for looking inside a network."""

from .ablation import AblationResult, AblationStudy, run_ablation_study
from .chimera import CHIMERA_PRESETS, ChimeraPreset, ChimeraResult, dream_chimera
from .confusion import ConfusionData, compute_confusion_matrix
from .decision_boundary import BoundaryCell, DecisionBoundaryResult, compute_decision_boundary, generate_exemplar
from .dreams import DreamResult, dream
from .epoch_replay import EpochRecorder, EpochSnapshot, LayerParams, params_to_layers, replay_forward
from .gradient_flow import (
    GradientFlowHistory,
    GradientFlowSnapshot,
    GradientHealthThresholds,
    LayerGradientStats,
    measure_gradient_flow,
)
from .gradients import GradientProbe, compute_input_gradient
from .misfits import Misfit, MisfitSummary, compute_misfit_summary, find_misfits
from .pca import PCAProjection, collect_hidden_activations, project_to_2d
from .saliency import compute_saliency
from .weight_evolution import WeightEvolutionRecorder, WeightFrame, compute_weight_delta

__all__ = [
    "AblationResult",
    "AblationStudy",
    "BoundaryCell",
    "CHIMERA_PRESETS",
    "ChimeraPreset",
    "ChimeraResult",
    "ConfusionData",
    "DecisionBoundaryResult",
    "DreamResult",
    "EpochRecorder",
    "EpochSnapshot",
    "GradientFlowHistory",
    "GradientFlowSnapshot",
    "GradientHealthThresholds",
    "GradientProbe",
    "LayerGradientStats",
    "LayerParams",
    "Misfit",
    "MisfitSummary",
    "PCAProjection",
    "WeightEvolutionRecorder",
    "WeightFrame",
    "collect_hidden_activations",
    "compute_confusion_matrix",
    "compute_decision_boundary",
    "compute_input_gradient",
    "compute_misfit_summary",
    "compute_saliency",
    "compute_weight_delta",
    "dream",
    "dream_chimera",
    "find_misfits",
    "generate_exemplar",
    "measure_gradient_flow",
    "params_to_layers",
    "project_to_2d",
    "replay_forward",
    "run_ablation_study",
]
