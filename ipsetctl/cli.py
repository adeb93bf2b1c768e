import cmd
import shlex
import sys
from .config import load_config, save_config, config_path, Settings
from .errors import ConfigError, IPSetError
from .ipset import IPSet, Membership

class IPSetCLI(cmd.Cmd):
    prompt = "ipsetctl> "

    def __init__(self, ipset: IPSet, settings: Settings = None, config: str = None):
        super().__init__()
        self.ipset = ipset
        self.settings = settings or Settings()
        self.config = config
        self.failed = False

    def _call(self, fn, arg, nargs, variadic=False):
        args = shlex.split(arg)
        if len(args) < nargs or (not variadic and len(args) > nargs):
            need = f"至少{nargs}" if variadic else f"需要{nargs}"
            print(f"参数错误: {need}个参数", file=sys.stderr)
            self.failed = True
            return None
        try:
            result = fn(*args)
        except IPSetError as e:
            print(str(e).rstrip("\n") or "ipset执行失败", file=sys.stderr)
            self.failed = True
            return None
        self.failed = False
        return result

    def do_create(self, arg):
        """create <name> <type> [key value ...]"""
        self._call(self.ipset.create, arg, 2, variadic=True)

    def do_add(self, arg):
        """add <name> <entry> [key value ...]"""
        self._call(self.ipset.add, arg, 2, variadic=True)

    def do_add_unique(self, arg):
        """add_unique <name> <entry> [key value ...]"""
        self._call(self.ipset.add_unique, arg, 2, variadic=True)

    def do_del(self, arg):
        """del <name> <entry> [key value ...]"""
        self._call(self.ipset.delete, arg, 2, variadic=True)

    def do_test(self, arg):
        """test <name> <entry> [key value ...]"""
        r = self._call(self.ipset.check, arg, 2, variadic=True)
        if r is None:
            return
        if r.state is Membership.FAILED:
            print(r.detail.rstrip("\n"), file=sys.stderr)
        else:
            print(r.state.value)
        self.failed = r.state is not Membership.PRESENT

    def do_destroy(self, arg):
        """destroy <name>"""
        self._call(self.ipset.destroy, arg, 1)

    def do_save(self, arg):
        """save <name> <file>"""
        self._call(self.ipset.save, arg, 2)

    def do_restore(self, arg):
        """restore <file>"""
        self._call(self.ipset.restore, arg, 1)

    def do_flush(self, arg):
        """flush <name>"""
        self._call(self.ipset.flush, arg, 1)

    def do_rename(self, arg):
        """rename <from> <to>"""
        self._call(self.ipset.rename, arg, 2)

    def do_swap(self, arg):
        """swap <from> <to>"""
        self._call(self.ipset.swap, arg, 2)

    def do_list(self, arg):
        """list <name>"""
        members = self._call(self.ipset.list, arg, 1)
        for m in members or []:
            print(m)

    def do_status(self, arg):
        print(f"ipset路径: {self.ipset.path}")
        print(f"配置文件: {config_path(self.config)}")

    def do_config_show(self, arg):
        try:
            settings = load_config(self.config)
        except ConfigError as e:
            print(str(e), file=sys.stderr)
            self.failed = True
            return
        self.failed = False
        print(settings)

    def do_config_reset(self, arg):
        try:
            save_config(Settings(), self.config)
        except OSError as e:
            print(f"无法写入配置: {e}", file=sys.stderr)
            self.failed = True
            return
        self.failed = False
        print("已重置配置")

    def do_exit(self, arg):
        return True

    def emptyline(self):
        pass

    def default(self, line):
        print(f"未知命令: {line}", file=sys.stderr)
        self.failed = True

def run(ipset: IPSet, settings: Settings = None, config: str = None):
    IPSetCLI(ipset, settings, config).cmdloop()
