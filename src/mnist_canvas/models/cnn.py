import torch
import torch.nn as nn

def conv_stage(in_channels, out_channels):
    # Two 3x3 convolutions keep the spatial size, the pool halves it
    return nn.Sequential(
        nn.Conv2d(in_channels, out_channels, 3, padding=1),
        nn.BatchNorm2d(out_channels),
        nn.ReLU(),
        nn.Conv2d(out_channels, out_channels, 3, padding=1),
        nn.BatchNorm2d(out_channels),
        nn.ReLU(),
        nn.MaxPool2d(2),
    )

class DigitCNN(nn.Module):
    """CNN over 1x1x28x28 inputs (1.0 = ink) producing raw logits for the ten digit classes."""

    def __init__(self, num_classes=10, hidden_size=512):
        super(DigitCNN, self).__init__()
        self.features = nn.Sequential(
            conv_stage(1, 32),   # 28x28x1 -> 14x14x32
            conv_stage(32, 64),  # 14x14x32 -> 7x7x64
        )

        self.head = nn.Sequential(
            nn.Flatten(),
            nn.Dropout(0.5),
            nn.Linear(64 * 7 * 7, hidden_size),
            nn.BatchNorm1d(hidden_size),
            nn.ReLU(),
            nn.Dropout(0.3),
            nn.Linear(hidden_size, num_classes),
        )

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.head(self.features(x))
