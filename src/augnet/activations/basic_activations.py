import numpy as np

def sigmoid_activation(z):
    # Clip to prevent overflow in exp; sigmoid is saturated well before +-500
    z_clipped = np.clip(z, -500.0, 500.0)
    return 1.0 / (1.0 + np.exp(-z_clipped))
