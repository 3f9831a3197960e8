# pragma: no cover

"""General interface for a SA algorithm kernel."""


class Kernel(object):
    """A general API for a SA algorithm kernel.

    Attributes
    ----------
    cost : float
        The cost of the current assignment.
    """

    def __init__(self, assignment, cost_model, random, **kwargs):
        """Initialise the algorithm kernel with a placement problem.

        A kernel need not be able to handle the following special-case
        placement problems:

        * Fewer than two cores
        * Incomplete initial assignments

        Parameters
        ----------
        assignment : :py:class:`~nocmap.assignment.Assignment`
            A complete initial assignment. The kernel may modify this object
            at will.
        cost_model : :py:class:`~nocmap.cost.CostModel`
            Evaluates the cost of an assignment.
        random : :py:class:`~nocmap.lcg.LCG`
            The random number generator to use.
        """
        raise NotImplementedError()

    def run_steps(self, num_steps, temperature):
        """Attempt num_steps swaps.

        Parameters
        ----------
        num_steps : int
            The number of swap attempts to be made.
        temperature : float
            The current annealing temperature.

        Returns
        -------
        num_accepted : int
            The number of accepted swaps.
        num_free : int
            The number of accepted swaps which did not change the cost.
        cost : float
            The cost of the assignment after all swaps have been completed.
        """
        raise NotImplementedError()

    def get_assignment(self):
        """Get the current assignment.

        Returns
        -------
        :py:class:`~nocmap.assignment.Assignment`
        """
        raise NotImplementedError()
