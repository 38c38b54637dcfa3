"""Engine — the release pipeline shared by install and update."""
