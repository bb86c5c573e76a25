"""
Activations Package

This package provides the transfer function applied by network nodes.

Exported:
    sigmoid_activation: Logistic function 1 / (1 + exp(-z))
"""

from augnet.activations.basic_activations import sigmoid_activation

__all__ = ['sigmoid_activation']
