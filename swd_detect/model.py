"""Event classifier: a small MLP over per-event features.

The checkpoint is produced elsewhere (training is not part of this package);
this module rebuilds the network from the checkpoint and exposes the
``predict(X) -> (labels, scores)`` interface the detector expects.
"""
import os
from typing import Optional, Sequence, Tuple

import numpy as np
import torch
from torch import nn


class EventClassifierNet(nn.Module):
    """Feature standardization + two hidden layers + class logits."""

    def __init__(self, input_dim: int, hidden_dim: int = 32, num_classes: int = 2, dropout: float = 0.1):
        super().__init__()
        self.input_dim = input_dim
        self.hidden_dim = hidden_dim
        self.num_classes = num_classes

        self.register_buffer("feature_mean", torch.zeros(input_dim))
        self.register_buffer("feature_std", torch.ones(input_dim))

        self.classifier = nn.Sequential(
            nn.Linear(input_dim, hidden_dim),
            nn.ReLU(inplace=True),
            nn.Dropout(dropout),
            nn.Linear(hidden_dim, hidden_dim // 2),
            nn.ReLU(inplace=True),
            nn.Dropout(dropout),
            nn.Linear(hidden_dim // 2, num_classes),
        )
        self._init_weights()

    def _init_weights(self):
        for name, param in self.classifier.named_parameters():
            if 'weight' in name:
                nn.init.xavier_normal_(param)
            elif 'bias' in name:
                nn.init.constant_(param, 0)

    def set_feature_stats(self, mean: Sequence[float], std: Sequence[float]):
        mean_t = torch.as_tensor(np.asarray(mean, dtype=np.float32))
        std_t = torch.as_tensor(np.asarray(std, dtype=np.float32))
        # 零方差特征不做缩放
        std_t = torch.where(std_t == 0, torch.ones_like(std_t), std_t)
        self.feature_mean.copy_(mean_t)
        self.feature_std.copy_(std_t)

    def forward(self, x):
        # x: [B, F]
        x = (x - self.feature_mean) / self.feature_std
        return self.classifier(x)


class TorchEventClassifier:
    """Read-only wrapper: numpy features in, (labels, softmax scores) out."""

    def __init__(self, model: EventClassifierNet, classes: Sequence = (0, 1)):
        if len(classes) != model.num_classes:
            raise ValueError(f"{len(classes)} class values for a {model.num_classes}-class model")
        self.model = model.eval()
        self.classes = list(classes)

    def predict(self, X: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        X = np.asarray(X, dtype=np.float32)
        if X.ndim != 2 or X.shape[1] != self.model.input_dim:
            raise ValueError(f"expected features [N, {self.model.input_dim}], got {X.shape}")
        with torch.no_grad():
            logits = self.model(torch.from_numpy(X))
            scores = torch.softmax(logits, dim=-1).cpu().numpy()
        labels = np.asarray(self.classes)[np.argmax(scores, axis=1)]
        return labels, scores


def save_classifier(path: str, model: EventClassifierNet, classes: Sequence = (0, 1)) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    torch.save({
        "model": model.state_dict(),
        "input_dim": int(model.input_dim),
        "hidden_dim": int(model.hidden_dim),
        "classes": [int(c) for c in classes],
    }, path)


def load_classifier(path: str, expected_input_dim: Optional[int] = None) -> TorchEventClassifier:
    if not os.path.exists(path):
        raise FileNotFoundError(f"classifier not found: {path}")
    state = torch.load(path, map_location="cpu")
    classes = state.get("classes", [0, 1])
    input_dim = int(state["input_dim"])
    if expected_input_dim is not None and input_dim != int(expected_input_dim):
        raise RuntimeError(f"Checkpoint expects {input_dim} features, extractor produces {expected_input_dim}.")
    model = EventClassifierNet(input_dim=input_dim, hidden_dim=int(state.get("hidden_dim", 32)), num_classes=len(classes))
    model.load_state_dict(state["model"])
    return TorchEventClassifier(model, classes=classes)
