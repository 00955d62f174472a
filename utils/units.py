"""Unit constants. Momenta and energies are stored in GeV, cross-sections in pb."""
import math

GeV = 1.0
MeV = 1.0e-3 * GeV
TeV = 1.0e3 * GeV

picobarn = 1.0
femtobarn = 1.0e-3 * picobarn

PI = math.pi
TWOPI = 2.0 * math.pi
