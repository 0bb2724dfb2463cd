from __future__ import annotations

from typing import Any, List, Optional, Union

import numpy as np
import torch
from torch import nn

from tiny_workflow.workflow.transformer import BatchTransformer


class ModuleTransformer(BatchTransformer):
    """
    Transformer that runs a PyTorch module over item batches.

    Example::

        embed = ModuleTransformer(nn.Linear(8, 2))
        features = embed.apply_bulk(parallelize(rows, num_partitions=4))

    Items are stacked along a new leading axis, moved to ``device`` and run
    under ``torch.no_grad()``. Outputs come back as numpy arrays, one per item.
    """

    def __init__(
        self,
        module: nn.Module,
        *,
        device: Optional[Union[str, torch.device]] = None,
        dtype: torch.dtype = torch.float32,
    ) -> None:
        super().__init__()
        self.device = torch.device(device) if device is not None else torch.device("cpu")
        self.dtype = dtype
        self.module = module.to(self.device)
        self.module.eval()

    @property
    def label(self) -> str:
        return type(self.module).__name__

    def apply_batch(self, batch: np.ndarray) -> List[Any]:
        inputs = torch.as_tensor(batch, dtype=self.dtype, device=self.device)
        with torch.no_grad():
            outputs = self.module(inputs)
        return list(outputs.detach().cpu().numpy())
