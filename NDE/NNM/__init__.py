# =============================================================================
# NNM - Neural Network Module
# Subfolder of NDE (Neural Display Engine)
# =============================================================================
#
# The 7 → 2 → 10 digit classifier whose wires the board lights up.
#
# Modules:
#   model.py       - network definition (torch), training set, epoch loop
#   snapshot.py    - immutable WeightSnapshot, SnapshotHolder, predict /
#                    predict_class (numpy only)
#   activations.py - replays a forward pass keeping every per-wire product
#   trainer.py     - IncrementalTrainer: one epoch at a time in the
#                    background, snapshot swapped per epoch
#
# Only trainer.py and model.py import torch.  Everything downstream of a
# WeightSnapshot is plain numpy.
# =============================================================================
