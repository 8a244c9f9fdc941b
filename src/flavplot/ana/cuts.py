"""Kinematic selection of the jets entering the plots."""

from flavplot.utils.errors import ConfigurationError

__all__ = ["JetCuts"]


class JetCuts:
    """Cuts on the polar angle and the momentum of the jets.

    All bounds are inclusive.
    """

    def __init__(
        self, cos_theta_min=-1.0, cos_theta_max=1.0, p_min=0.0, p_max=float("inf")
    ):
        """Store the four cut bounds.

        Parameters
        ----------
        cos_theta_min : float, default -1.0
            Lower bound on the jet cos(theta)
        cos_theta_max : float, default 1.0
            Upper bound on the jet cos(theta)
        p_min : float, default 0.0
            Lower bound on the jet momentum
        p_max : float, default inf
            Upper bound on the jet momentum
        """
        if not cos_theta_min <= cos_theta_max:
            raise ConfigurationError(
                f"The cos(theta) range [{cos_theta_min}, {cos_theta_max}] is empty."
            )
        if not p_min <= p_max:
            raise ConfigurationError(f"The momentum range [{p_min}, {p_max}] is empty.")
        self.cos_theta_min = cos_theta_min
        self.cos_theta_max = cos_theta_max
        self.p_min = p_min
        self.p_max = p_max

    def passes_jet_cuts(self, jet):
        """Check that one jet is within the kinematic range.

        Parameters
        ----------
        jet : Jet
            Reconstructed jet

        Returns
        -------
        bool
            `True` if the four bounds are satisfied
        """
        cos_theta, p = jet.cos_theta, jet.p
        return (
            self.cos_theta_min <= cos_theta <= self.cos_theta_max
            and self.p_min <= p <= self.p_max
        )

    def passes_event_cuts(self, jets):
        """Check that every jet of an event is within the kinematic range.

        A single jet outside of the range rejects the event for all the
        jet-level plots.

        Parameters
        ----------
        jets : List[Jet]
            Reconstructed jets of the event

        Returns
        -------
        bool
            `True` if all the jets pass the jet cuts
        """
        return all(self.passes_jet_cuts(jet) for jet in jets)
