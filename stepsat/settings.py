class GlobalSettings:

    def __init__(self):

        # benchmark layout
        self.benchmark_root = 'benchmarks'
        self.results_dir = 'results'
        self.backup_path = 'results/backup.tmp'

        # per-instance limits
        self.timeout = 300
        self.max_consecutive_timeouts = 10

        # memory sampling period in seconds
        self.memory_interval = 0.001

        # check every SAT witness against the input clauses
        self.verify_witness = 1

        # logger level (0: WARNING, 1: INFO, 2: DEBUG)
        self.verbosity = 1

    def __getitem__(self, key):
        return self.__dict__[key]

    def __setitem__(self, key, value):
        self.__dict__[key] = value

    def setup(self, args):
        if args is None:
            return
        for key in self.__dict__:
            value = getattr(args, key, None)
            if value is not None:
                self[key] = value

    def __repr__(self):
        return (
            '\n[!] Current settings:\n'
            f'\t- benchmark_root                : {self.benchmark_root}\n'
            f'\t- results_dir                   : {self.results_dir}\n'
            f'\t- backup_path                   : {self.backup_path}\n'
            f'\t- timeout                       : {self.timeout}\n'
            f'\t- max_consecutive_timeouts      : {int(self.max_consecutive_timeouts)}\n'
            f'\t- memory_interval               : {self.memory_interval}\n'
            f'\t- verify_witness                : {bool(self.verify_witness)}\n'
            f'\t- verbosity                     : {int(self.verbosity)}\n'
        )


Settings = GlobalSettings()
